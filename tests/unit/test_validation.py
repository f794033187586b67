"""Tests for validator adapters."""

import pytest
from conftest import Email, Name

from formflow import PydanticValidator, create_validator
from formflow.validation import as_validator, validate_step, validate_step_sync


@pytest.mark.asyncio
async def test_pydantic_validator_success_returns_plain_data():
    result = await PydanticValidator(Name).safe_parse({"name": "John"})
    assert result.success
    assert result.data == {"name": "John"}
    assert result.field_errors == {}


@pytest.mark.asyncio
async def test_pydantic_validator_failure_has_field_errors():
    result = await PydanticValidator(Email).safe_parse({"email": None})
    assert not result.success
    assert result.data is None
    assert list(result.field_errors) == ["email"]


@pytest.mark.asyncio
async def test_pydantic_validator_parse_raises():
    with pytest.raises(ValueError):
        await PydanticValidator(Name).parse({})


@pytest.mark.asyncio
async def test_callable_validator_sync_and_async():
    def check_sync(data):
        if not data.get("ok"):
            raise ValueError("not ok")
        return data

    async def check_async(data):
        return check_sync(data)

    for validator in (create_validator(check_sync), create_validator(check_async)):
        assert (await validator.safe_parse({"ok": True})).data == {"ok": True}
        failure = await validator.safe_parse({})
        assert not failure.success
        assert failure.field_errors == {"__root__": ["not ok"]}


@pytest.mark.asyncio
async def test_callable_validator_propagates_unexpected_errors():
    def broken(data):
        raise RuntimeError("backend down")

    with pytest.raises(RuntimeError):
        await create_validator(broken).safe_parse({})


def test_sync_variants():
    validator = create_validator(lambda d: d, validate_sync=lambda d: {**d, "sync": True})
    assert validator.supports_sync
    assert validator.safe_parse_sync({}).data == {"sync": True}

    with pytest.raises(TypeError):
        create_validator(lambda d: d).parse_sync({})

    assert validate_step_sync(Name, {"name": "x"}).success
    assert not validate_step_sync(Name, {}).success


def test_as_validator():
    custom = create_validator(lambda d: d)
    assert as_validator(custom) is custom
    assert as_validator(None) is None
    assert isinstance(as_validator(Name), PydanticValidator)


@pytest.mark.asyncio
async def test_validate_step():
    assert (await validate_step(Name, {"name": "x"})).success
    with pytest.raises(TypeError):
        await validate_step(None, {})


@pytest.mark.asyncio
async def test_non_model_schema():
    result = await PydanticValidator(int).safe_parse("42")
    assert result.data == 42
