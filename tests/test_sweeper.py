import threading
from unittest.mock import Mock

import pytest

from wallet_auth.services.sweeper import ExpirySweeper


class TestExpirySweeper:
    def test_run_once_sweeps_every_store(self, nonce_store, session_store, clock):
        # Arrange
        nonce_store.add("n1")
        nonce_store.add("n2")
        session_store.create("0x742d35Cc6634C0532925a3b844Bc454e4438f44e")
        clock.advance(session_store.ttl_seconds + 1)
        sweeper = ExpirySweeper([nonce_store, session_store], interval_seconds=60)

        # Act
        removed = sweeper.run_once()

        # Assert
        assert removed == 3
        assert len(nonce_store) == 0
        assert len(session_store) == 0

    def test_failing_store_does_not_stop_others(self):
        broken = Mock()
        broken.sweep.side_effect = ConnectionError("redis down")
        healthy = Mock()
        healthy.sweep.return_value = 2

        assert ExpirySweeper([broken, healthy], interval_seconds=60).run_once() == 2
        healthy.sweep.assert_called_once()

    def test_background_thread_sweeps_until_stopped(self):
        # Arrange
        swept = threading.Event()
        store = Mock()
        store.sweep.side_effect = lambda: swept.set() or 0
        sweeper = ExpirySweeper([store], interval_seconds=0.01)

        # Act
        sweeper.start()
        fired = swept.wait(timeout=2)
        sweeper.stop()

        # Assert
        assert fired is True
        assert sweeper.running is False

    def test_start_twice_keeps_one_thread(self):
        sweeper = ExpirySweeper([Mock()], interval_seconds=30)
        sweeper.start()
        first = sweeper._thread

        sweeper.start()

        assert sweeper._thread is first
        sweeper.stop()

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            ExpirySweeper([], interval_seconds=0)
