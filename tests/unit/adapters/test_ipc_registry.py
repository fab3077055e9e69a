"""Unit tests for ClientRegistry."""

import signal
from unittest.mock import MagicMock, patch

import pytest

from searchlink.adapters.ipc.client import SearchClient, SessionState
from searchlink.adapters.ipc.registry import ClientRegistry


class TestGet:
    """Tests for ClientRegistry.get()."""

    def test_same_workspace_returns_same_client(self) -> None:
        registry = ClientRegistry()

        assert registry.get("/mock/workspace") is registry.get("/mock/workspace")

    def test_different_workspace_returns_new_client(self) -> None:
        registry = ClientRegistry()

        first = registry.get("/workspace1")
        second = registry.get("/workspace2")

        assert first is not second
        assert second.workspace_path == "/workspace2"
        assert registry.current is second

    def test_replaced_client_is_not_cleaned_up(self) -> None:
        registry = ClientRegistry()
        first = registry.get("/workspace1")
        first.cleanup = MagicMock()

        registry.get("/workspace2")

        first.cleanup.assert_not_called()

    def test_uses_client_factory(self) -> None:
        factory = MagicMock(side_effect=lambda path: SearchClient(path))
        registry = ClientRegistry(client_factory=factory)

        registry.get("/w")
        registry.get("/w")

        factory.assert_called_once_with("/w")


class TestCleanupAll:
    """Tests for ClientRegistry.cleanup_all()."""

    def test_cleanup_without_client_is_noop(self) -> None:
        registry = ClientRegistry()

        registry.cleanup_all()

        assert registry.current is None

    def test_cleanup_then_get_returns_new_uninitialized_client(self) -> None:
        registry = ClientRegistry()
        first = registry.get("/mock/workspace")

        registry.cleanup_all()
        second = registry.get("/mock/workspace")

        assert second is not first
        assert second.state is SessionState.UNINITIALIZED

    def test_cleanup_calls_client_cleanup(self) -> None:
        registry = ClientRegistry()
        client = registry.get("/w")
        client.cleanup = MagicMock()

        registry.cleanup_all()

        client.cleanup.assert_called_once()


class TestShutdownHooks:
    """Tests for exit and signal hook installation."""

    @pytest.fixture
    def registry(self):
        registry = ClientRegistry()
        yield registry
        registry.uninstall_shutdown_hooks()

    def test_install_registers_exit_and_signal_handlers_once(self, registry) -> None:
        with (
            patch("searchlink.adapters.ipc.registry.atexit.register") as register,
            patch("searchlink.adapters.ipc.registry.signal.signal") as set_handler,
        ):
            registry.install_shutdown_hooks()
            registry.install_shutdown_hooks()

        register.assert_called_once_with(registry.cleanup_all)
        handled = [call.args[0] for call in set_handler.call_args_list]
        assert handled == [signal.SIGINT, signal.SIGTERM]
        assert registry.hooks_installed

    def test_sigterm_cleans_up_then_exits(self, registry) -> None:
        client = registry.get("/w")
        client.cleanup = MagicMock()
        registry._previous_handlers[signal.SIGTERM] = signal.SIG_DFL

        with pytest.raises(SystemExit) as exc_info:
            registry._handle_signal(signal.SIGTERM, None)

        client.cleanup.assert_called_once()
        assert exc_info.value.code == 128 + signal.SIGTERM
        assert registry.current is None

    def test_sigint_with_default_handler_raises_keyboard_interrupt(self, registry) -> None:
        registry._previous_handlers[signal.SIGINT] = signal.default_int_handler

        with pytest.raises(KeyboardInterrupt):
            registry._handle_signal(signal.SIGINT, None)

    def test_previous_handler_is_chained(self, registry) -> None:
        previous = MagicMock()
        registry._previous_handlers[signal.SIGTERM] = previous

        registry._handle_signal(signal.SIGTERM, None)

        previous.assert_called_once_with(signal.SIGTERM, None)

    def test_ignored_signal_stays_ignored(self, registry) -> None:
        registry._previous_handlers[signal.SIGTERM] = signal.SIG_IGN

        registry._handle_signal(signal.SIGTERM, None)

    def test_uninstall_restores_previous_handlers(self) -> None:
        registry = ClientRegistry()
        before = signal.getsignal(signal.SIGTERM)

        registry.install_shutdown_hooks(signals=(signal.SIGTERM,))
        assert signal.getsignal(signal.SIGTERM) == registry._handle_signal
        registry.uninstall_shutdown_hooks()

        assert signal.getsignal(signal.SIGTERM) == before
        assert not registry.hooks_installed
