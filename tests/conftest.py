"""Shared flows and helpers for formflow tests."""

from typing import Literal

import pytest
from pydantic import BaseModel

from formflow import StepDefinition, create_flow, define_transition, silent_logger


class Name(BaseModel):
    name: str


class Email(BaseModel):
    email: str


class Done(BaseModel):
    done: bool


class Choice(BaseModel):
    type: Literal["a", "b"]


class ValueA(BaseModel):
    value_a: str


class ValueB(BaseModel):
    value_b: str


class Confirm(BaseModel):
    confirmed: bool


def choose_branch(data, all_data):
    return "branch_a" if data["type"] == "a" else "branch_b"


class RecordingLogger:
    def __init__(self):
        self.warnings = []
        self.errors = []

    def warn(self, message, context=None):
        self.warnings.append((message, context))

    def error(self, message, context=None):
        self.errors.append((message, context))


def make_linear_flow(logger=silent_logger):
    return create_flow(
        "linear",
        {
            "step1": {"schema": Name, "next": "step2"},
            "step2": {"schema": Email, "next": "step3"},
            "step3": {"schema": Done, "next": None},
        },
        "step1",
        logger=logger,
    )


def make_branching_flow(logger=silent_logger):
    return create_flow(
        "branching",
        {
            "start": StepDefinition(
                schema=Choice,
                next=define_transition(choose_branch, ["branch_a", "branch_b"]),
            ),
            "branch_a": {"schema": ValueA, "next": "end"},
            "branch_b": {"schema": ValueB, "next": "end"},
            "end": {"schema": Confirm, "next": None},
        },
        "start",
        logger=logger,
    )


def make_nested_branching_flow(logger=silent_logger):
    return create_flow(
        "nested",
        {
            "intro": {"schema": Name, "next": "start"},
            "start": StepDefinition(
                schema=Choice,
                next=define_transition(choose_branch, ["branch_a", "branch_b"]),
            ),
            "branch_a": {"schema": ValueA, "next": "end"},
            "branch_b": {"schema": ValueB, "next": "end"},
            "end": {"schema": Confirm, "next": None},
        },
        "intro",
        logger=logger,
    )


@pytest.fixture
def nested_flow():
    return make_nested_branching_flow()


@pytest.fixture
def linear_flow():
    return make_linear_flow()


@pytest.fixture
def branching_flow():
    return make_branching_flow()


@pytest.fixture
def recording_logger():
    return RecordingLogger()


class FakeClock:
    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()
