"""Tests for scripts/backfill_token.py wiring."""

import importlib.util
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tokenoracle.config import settings
from tokenoracle.domain.models.price import BackfillResult
from tokenoracle.infra.http.retry import RetryPolicy

TOKEN = "0x" + "ab" * 20
SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "backfill_token.py"


@pytest.fixture()
def script():
    spec = importlib.util.spec_from_file_location("backfill_token_script", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestBackfillScript:
    async def test_applies_source_settings(self, script):
        engine = MagicMock()
        engine.dispose = AsyncMock()
        runner = MagicMock()
        runner.run = AsyncMock(return_value=BackfillResult(token=TOKEN, network="ethereum", total=1, succeeded=1))

        with patch("tokenoracle.db.session.build_engine", return_value=engine), \
                patch("tokenoracle.db.session.build_session_factory"), \
                patch("tokenoracle.infra.http.rate_limited_client.RateLimitedClient") as client_cls, \
                patch("tokenoracle.infra.price.alchemy.AlchemyPriceSource") as source_cls, \
                patch("tokenoracle.workers.backfill.BackfillRunner", return_value=runner) as runner_cls:
            await script.main(TOKEN, "ethereum")

        assert client_cls.call_args.kwargs == {
            "rate_per_second": settings.alchemy_rate_per_second,
            "timeout": settings.http_timeout_seconds,
        }
        assert source_cls.call_args.kwargs["retry_policy"] == RetryPolicy.from_settings(settings)
        assert runner_cls.call_args.kwargs["batch_size"] == settings.backfill_batch_size
        runner.run.assert_awaited_once_with(TOKEN, "ethereum")
        engine.dispose.assert_awaited_once()
