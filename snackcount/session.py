from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any

from .counter_cache import LocalCounterCache
from .identity import Identity, IdentityStore
from .records import UserRecord
from .sync.client import SyncClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_COUNT = 51


class SessionState(str, Enum):
    NO_IDENTITY = "no_identity"
    IDENTITY_ESTABLISHED = "identity_established"
    LOCAL_COUNT_LOADING = "local_count_loading"
    LOCAL_COUNT_LOADED = "local_count_loaded"
    PUSHING = "pushing"


def milestone_message(count: int) -> list[str]:
    messages: list[str] = []
    if 35 < count < 39:
        messages.append("Almost there 😉")
    if count > 39:
        messages.append("I think that's enough for today, huh? 😉")
    if count > 40:
        messages.append("🚨 SNACK ALERT! 🚨")
    return messages


class TaskRunner:
    """Runs session tasks one at a time, in submission order.

    With ``background=False`` every task runs inline on the caller's thread.
    """

    def __init__(self, *, background: bool = True) -> None:
        self.background = background
        self._queue: queue.Queue[tuple[Callable[..., Any], tuple[Any, ...]] | None] = (
            queue.Queue()
        )
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._closed = False

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        if self._closed:
            return
        if not self.background:
            self._run_one(fn, args)
            return
        with self._lock:
            if self._thread is None:
                self._thread = threading.Thread(target=self._worker, daemon=True)
                self._thread.start()
        self._queue.put((fn, args))

    def _run_one(self, fn: Callable[..., Any], args: tuple[Any, ...]) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception("session task %s failed", getattr(fn, "__name__", fn))

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                fn, args = item
                self._run_one(fn, args)
            finally:
                self._queue.task_done()

    def wait_idle(self) -> None:
        if self.background and self._thread is not None:
            self._queue.join()

    def close(self, timeout_s: float | None = 5.0) -> None:
        self._closed = True
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is not None:
            self._queue.put(None)
            thread.join(timeout_s)


class CounterSession:
    """Counter state for one user on this device.

    A counter mutation is an explicit event: it schedules a save task against
    the local cache, and the save schedules a sync task (push, then pull).
    Every identity change bumps ``generation``; tasks carrying an older
    generation finish without touching session state.
    """

    def __init__(
        self,
        identity_store: IdentityStore,
        cache: LocalCounterCache,
        sync_client: SyncClient,
        *,
        max_count: int = DEFAULT_MAX_COUNT,
        background: bool = True,
        on_change: Callable[[CounterSession], None] | None = None,
    ) -> None:
        self.identity_store = identity_store
        self.cache = cache
        self.sync_client = sync_client
        self.max_count = max_count
        self.on_change = on_change
        self._runner = TaskRunner(background=background)
        self._lock = threading.RLock()
        self._state = SessionState.NO_IDENTITY
        self._identity: Identity | None = None
        self._count = 0
        self._generation = 0
        self._closed = False

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def identity(self) -> Identity | None:
        with self._lock:
            return self._identity

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def ranking(self) -> list[UserRecord]:
        return self.sync_client.ranking

    @property
    def loaded(self) -> bool:
        return self.state in {SessionState.LOCAL_COUNT_LOADED, SessionState.PUSHING}

    def _notify(self) -> None:
        if self.on_change is None or self._closed:
            return
        try:
            self.on_change(self)
        except Exception as exc:
            logger.warning("session change listener failed", exc_info=exc)

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def start(self) -> None:
        self._runner.submit(self._pull_task)
        identity = self.identity_store.get_identity()
        if identity is None:
            with self._lock:
                self._state = SessionState.NO_IDENTITY
            self._notify()
            return
        self._enter_identity(identity)

    def sign_in(self, name: str) -> str:
        user_id = self.identity_store.establish_identity(name)
        self._enter_identity(Identity(user_id=user_id, user_name=name.strip()))
        return user_id

    def change_user(self) -> None:
        self.identity_store.clear_identity()
        with self._lock:
            self._generation += 1
            self._identity = None
            self._count = 0
            self._state = SessionState.NO_IDENTITY
        logger.info("identity cleared")
        self._notify()

    def _enter_identity(self, identity: Identity) -> None:
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._identity = identity
            self._count = 0
            self._state = SessionState.IDENTITY_ESTABLISHED
        self._notify()
        with self._lock:
            self._state = SessionState.LOCAL_COUNT_LOADING
        self._notify()
        self._runner.submit(self._load_task, generation, identity)

    def increment(self) -> bool:
        with self._lock:
            if not self.loaded or self._count >= self.max_count:
                return False
            self._count += 1
            event = (self._generation, self._identity, self._count)
        self._on_counter_changed(*event)
        return True

    def decrement(self) -> bool:
        with self._lock:
            if not self.loaded or self._count <= 0:
                return False
            self._count -= 1
            event = (self._generation, self._identity, self._count)
        self._on_counter_changed(*event)
        return True

    def _on_counter_changed(self, generation: int, identity: Identity | None, count: int) -> None:
        if identity is None:
            return
        self._notify()
        self._runner.submit(self._save_task, generation, identity, count)

    def _pull_task(self) -> None:
        self.sync_client.pull()
        self._notify()

    def _load_task(self, generation: int, identity: Identity) -> None:
        count = self.cache.read_count(identity.user_id)
        with self._lock:
            if not self._is_current(generation):
                logger.info("discarding stale count load for %s", identity.user_id)
                return
            self._count = count
            self._state = SessionState.LOCAL_COUNT_LOADED
        self._notify()
        # Registers the name server-side even when the count is unchanged.
        self._runner.submit(self._sync_task, generation, identity, count)

    def _save_task(self, generation: int, identity: Identity, count: int) -> None:
        # Saved under the event identity even after change_user() or close().
        self.cache.write_count(identity.user_id, count)
        if not self._is_current(generation):
            return
        self._runner.submit(self._sync_task, generation, identity, count)

    def _sync_task(self, generation: int, identity: Identity, count: int) -> None:
        with self._lock:
            if not self._is_current(generation):
                return
            self._state = SessionState.PUSHING
        self._notify()
        self.sync_client.push(identity.user_id, identity.user_name, count)
        with self._lock:
            if not self._is_current(generation):
                return
            self._state = SessionState.LOCAL_COUNT_LOADED
        self._notify()

    def wait_idle(self) -> None:
        self._runner.wait_idle()

    def close(self) -> None:
        with self._lock:
            self._closed = True
        self._runner.close()
