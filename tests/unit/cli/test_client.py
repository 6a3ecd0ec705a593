"""Unit tests for CLI session helpers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import typer

from notevault.cli.client import fail, open_session
from notevault.core.exceptions import FetchError


def make_context() -> MagicMock:
    ctx = MagicMock()
    ctx.auth.initialize = AsyncMock(return_value=None)
    ctx.refresh = AsyncMock()
    ctx.close = AsyncMock()
    return ctx


class TestOpenSession:
    """Tests for open_session."""

    @pytest.mark.asyncio
    async def test_resolves_login_and_closes(self) -> None:
        """Should initialize auth and close the context afterwards."""
        ctx = make_context()

        with patch("notevault.cli.client.get_context", return_value=ctx):
            async with open_session() as opened:
                assert opened is ctx

        ctx.auth.initialize.assert_awaited_once()
        ctx.refresh.assert_not_awaited()
        ctx.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_load_catalog(self) -> None:
        """Should restore the snapshot before refreshing."""
        ctx = make_context()

        with patch("notevault.cli.client.get_context", return_value=ctx):
            async with open_session(load_catalog=True):
                pass

        ctx.cache.restore.assert_called_once()
        ctx.refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_closes_on_error(self) -> None:
        """Should close the context when the command raises."""
        ctx = make_context()

        with patch("notevault.cli.client.get_context", return_value=ctx):
            with pytest.raises(typer.Exit):
                async with open_session():
                    raise typer.Exit(1)

        ctx.close.assert_awaited_once()


class TestFail:
    def test_returns_exit_code_one(self, capsys) -> None:
        exit_ = fail(FetchError("Failed to fetch notes"))

        assert isinstance(exit_, typer.Exit)
        assert exit_.exit_code == 1
        assert "Failed to fetch notes" in capsys.readouterr().out
