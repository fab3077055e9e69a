"""Test helper utilities for the searchlink test suite."""

from tests.helpers.cli_assertions import (
    assert_command_failed,
    assert_command_success,
    assert_error_message,
    assert_files_created,
    assert_output_contains,
)
from tests.helpers.fake_coordinator import (
    CLOSE_REPLY,
    NO_REPLY,
    CoordinatorThread,
    FakeCoordinator,
    echo_handler,
)

__all__ = [
    "CLOSE_REPLY",
    "NO_REPLY",
    "CoordinatorThread",
    "FakeCoordinator",
    "assert_command_failed",
    "assert_command_success",
    "assert_error_message",
    "assert_files_created",
    "assert_output_contains",
    "echo_handler",
]
