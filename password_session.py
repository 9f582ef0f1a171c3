#!/usr/bin/env python3
"""Password Session — one player, one buffer, one event loop.

Everything that can change the game goes through a single asyncio queue and
is handled to completion, one event at a time:

  edit          player typed a new password
  toggle        player switched a rule on/off
  marker_tick   Paul takes a step (every ~12s)
  hazard_tick   a fire may appear ahead of him (every ~10s)
  definition    dictionary lookup finished
  temperature   weather lookup finished

Each handler reads the committed state, builds the next state and commits
it, then the catalog is re-evaluated. Nothing is merged from stale copies.

The walk is switched on the first time the evaluation discloses the
"paulHome" rule: the current password is wrapped as 🥚<password>🏠 and both
tickers start. Toggling the rule off pauses the walk (ticks are ignored); it
never resets it.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Optional

from game_config import GameConfig
from live_lookups import LiveLookup, LookupState, fetch_definition, fetch_temperature
from password_buffer import Buffer
from password_rules import MARKER_RULE_ID, SessionSeed, build_rules, validate_catalog
from rule_engine import ActivationRegistry, Evaluation, evaluate

logger = logging.getLogger(__name__)

MAX_NOTICES = 5
COLLISION_NOTICE = "🔥 Paul stepped into the fire! Your password burned down. Start over."
ACTIVATION_NOTICE = "🥚 Paul has hatched a plan: walk him home before the fire spreads."

EDIT = "edit"
TOGGLE = "toggle"
MARKER_TICK = "marker_tick"
HAZARD_TICK = "hazard_tick"
DEFINITION = "definition"
TEMPERATURE = "temperature"
STOP = "stop"


@dataclass(frozen=True)
class SessionEvent:
    kind: str
    payload: Any = None


class GameSession:
    def __init__(self, config: Optional[GameConfig] = None, rng: Optional[random.Random] = None,
                 definition_fetcher: Callable[..., LiveLookup] = fetch_definition,
                 temperature_fetcher: Callable[..., LiveLookup] = fetch_temperature,
                 catalog_builder: Callable[..., list] = build_rules):
        self.config = config or GameConfig()
        self.rng = rng or random.Random(self.config.seed)
        self.seed = SessionSeed.create(self.rng, self.config.words)

        self.definition = (LiveLookup.pending() if self.config.dictionary_enabled
                           else LiveLookup.failed("dictionary disabled"))
        self.temperature = (LiveLookup.pending() if self.config.weather_enabled
                            else LiveLookup.failed("weather disabled"))
        self._definition_fetcher = definition_fetcher
        self._temperature_fetcher = temperature_fetcher
        self._catalog_builder = catalog_builder

        self.buffer = Buffer()
        self.catalog = self._build_catalog()
        self.registry = ActivationRegistry(r.id for r in self.catalog)
        for rid in self.registry.disable(self.config.disabled_rules):
            logger.warning("disabled_rules: unknown rule id '%s'", rid)

        self.notices: list[str] = []
        self.evaluation: Optional[Evaluation] = None
        self._listeners: list[Callable[["GameSession"], None]] = []
        self._queue: asyncio.Queue = asyncio.Queue()
        self._tasks: dict[str, asyncio.Task] = {}
        self._running = False

        self._refresh(notify=False)

    # ========================================================
    # STATE
    # ========================================================

    def _build_catalog(self):
        rules = self._catalog_builder(
            self.seed, self.definition, self.temperature,
            tolerance=self.config.temperature_tolerance,
            location=self.config.weather_location,
        )
        for w in validate_catalog(rules):
            logger.warning("Catalog: %s", w)
        return rules

    def _has_marker_rule(self) -> bool:
        return any(r.id == MARKER_RULE_ID for r in self.catalog)

    def _walk_enabled(self) -> bool:
        return (self.buffer.activated and self._has_marker_rule()
                and self.registry.is_active(MARKER_RULE_ID))

    def _notify(self, message: str):
        self.notices.append(message)
        del self.notices[:-MAX_NOTICES]

    def _refresh(self, notify: bool = True):
        """Re-evaluate; wrap the buffer the first time paulHome is disclosed."""
        self.evaluation = evaluate(self.buffer.rendered(), self.catalog, self.registry.active_ids())

        if not self.buffer.activated and self.evaluation.is_visible(MARKER_RULE_ID):
            self.buffer = self.buffer.activate()
            logger.info("Walk activated: %d cells between Paul and home", len(self.buffer.cells))
            self._notify(ACTIVATION_NOTICE)
            self.evaluation = evaluate(self.buffer.rendered(), self.catalog, self.registry.active_ids())
            self._start_walk()

        if notify:
            for listener in list(self._listeners):
                listener(self)

    def add_listener(self, callback: Callable[["GameSession"], None]):
        """Called with the session after every committed change."""
        self._listeners.append(callback)

    # ========================================================
    # HANDLERS (one event at a time, read-modify-write)
    # ========================================================

    def handle_edit(self, text: str):
        self.buffer = self.buffer.apply_user_edit(text)
        self._refresh()

    def handle_toggle(self, rule_id: str) -> bool:
        if not self.registry.toggle(rule_id):
            logger.warning("Toggle ignored: unknown rule id '%s'", rule_id)
            self._notify(f"No rule called '{rule_id}'.")
            self._refresh()
            return False
        logger.info("Rule %s %s", rule_id, "enabled" if self.registry.is_active(rule_id) else "disabled")
        self._refresh()
        return True

    def handle_marker_tick(self):
        if not self._walk_enabled():
            logger.debug("Marker tick ignored (walk paused or not started)")
            return
        collided = self.buffer.collision_ahead
        self.buffer = self.buffer.advance_marker()
        if collided:
            logger.warning("Collision: Paul hit a fire, password reset")
            self._notify(COLLISION_NOTICE)
        else:
            logger.debug("Marker at %s/%d", self.buffer.marker_offset, len(self.buffer.cells))
        self._refresh()

    def handle_hazard_tick(self):
        if not self._walk_enabled():
            logger.debug("Hazard tick ignored (walk paused or not started)")
            return
        before = self.buffer.hazard_count
        self.buffer = self.buffer.spawn_hazard(self.rng)
        if self.buffer.hazard_count > before:
            logger.debug("Fire spawned (%d on the path)", self.buffer.hazard_count)
        else:
            logger.debug("No safe cell for a fire; spawn skipped")
        self._refresh()

    def handle_definition(self, lookup: LiveLookup):
        self.definition = lookup
        self._rebuild_catalog()

    def handle_temperature(self, lookup: LiveLookup):
        self.temperature = lookup
        self._rebuild_catalog()

    def _rebuild_catalog(self):
        self.catalog = self._build_catalog()
        self.registry.reconcile(r.id for r in self.catalog)
        if not self._has_marker_rule():
            self._stop_walk()
        self._refresh()

    def dispatch(self, event: SessionEvent):
        if event.kind == EDIT:
            self.handle_edit(event.payload)
        elif event.kind == TOGGLE:
            self.handle_toggle(event.payload)
        elif event.kind == MARKER_TICK:
            self.handle_marker_tick()
        elif event.kind == HAZARD_TICK:
            self.handle_hazard_tick()
        elif event.kind == DEFINITION:
            self.handle_definition(event.payload)
        elif event.kind == TEMPERATURE:
            self.handle_temperature(event.payload)
        else:
            logger.warning("Unknown event kind '%s' dropped", event.kind)

    # ========================================================
    # EVENT LOOP
    # ========================================================

    def submit_edit(self, text: str):
        self._queue.put_nowait(SessionEvent(EDIT, text))

    def submit_toggle(self, rule_id: str):
        self._queue.put_nowait(SessionEvent(TOGGLE, rule_id))

    def stop(self):
        self._queue.put_nowait(SessionEvent(STOP))

    @property
    def running(self) -> bool:
        return self._running

    async def run(self):
        """Serve events until stop(). Cancels every background task on exit."""
        self._running = True
        try:
            self._start_lookups()
            if self.buffer.activated:
                self._start_walk()
            while True:
                event = await self._queue.get()
                if event.kind == STOP:
                    break
                self.dispatch(event)
        finally:
            self._running = False
            tasks = list(self._tasks.values())
            self._tasks.clear()
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    def _spawn(self, name: str, coro):
        self._tasks[name] = asyncio.create_task(coro, name=name)

    def _start_lookups(self):
        timeout = self.config.lookup_timeout_seconds
        if self.definition.state is LookupState.PENDING:
            self._spawn("definition", self._lookup(
                DEFINITION, self._definition_fetcher, self.seed.word, timeout))
        if self.temperature.state is LookupState.PENDING:
            self._spawn("temperature", self._lookup(
                TEMPERATURE, self._temperature_fetcher,
                self.config.weather_latitude, self.config.weather_longitude, timeout))

    async def _lookup(self, kind: str, fetcher, *args):
        try:
            lookup = await asyncio.to_thread(fetcher, *args)
        except Exception as e:
            logger.exception("%s lookup crashed", kind)
            lookup = LiveLookup.failed(str(e))
        await self._queue.put(SessionEvent(kind, lookup))

    def _start_walk(self):
        if not self._running or MARKER_TICK in self._tasks:
            return
        self._spawn(MARKER_TICK, self._ticker(MARKER_TICK, self.config.marker_tick_seconds))
        self._spawn(HAZARD_TICK, self._ticker(HAZARD_TICK, self.config.hazard_tick_seconds))

    def _stop_walk(self):
        for name in (MARKER_TICK, HAZARD_TICK):
            task = self._tasks.pop(name, None)
            if task is not None:
                task.cancel()
                logger.info("Stopped %s ticker", name)

    async def _ticker(self, kind: str, period: float):
        while True:
            await asyncio.sleep(period)
            await self._queue.put(SessionEvent(kind))

    # ========================================================
    # OUTPUT
    # ========================================================

    def snapshot(self) -> dict:
        ev = self.evaluation
        status = self.buffer.status
        return {
            "password": self.buffer.rendered(),
            "rules": [
                {"id": r.id, "label": r.label, "satisfied": r.valid, "active": r.active}
                for r in ev.visible
            ],
            "complete": ev.all_satisfied,
            "satisfied": ev.satisfied,
            "total": ev.total,
            "walk": status.value if status else None,
            "hazards": self.buffer.hazard_count,
            "notices": list(self.notices),
        }
