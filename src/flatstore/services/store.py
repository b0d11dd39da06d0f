"""StoreService: one load, reduce, save cycle per operation.

The service owns the snapshot file. Every method loads the persisted
state, applies at most one action through the reducer and, when the
action succeeded, writes the result back. Rejected actions leave the
snapshot untouched and come back as a failed :class:`ServiceResult`
whose error code is the upper-cased toast kind.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

import structlog

from flatstore.domain import identity, selectors
from flatstore.domain.actions import CheckDndExpiry, SyncRemoteHouses
from flatstore.domain.models import StoreState
from flatstore.domain.normalize import normalize_state
from flatstore.domain.reducer import ReducerEnv, dispatch, reduce
from flatstore.domain.seed import seed_db
from flatstore.domain.types import ToastKind, UserStatus
from flatstore.infrastructure.snapshot import SnapshotError, SnapshotStore
from flatstore.services.result import ServiceResult

if TYPE_CHECKING:
    from flatstore.config.settings import FlatstoreSettings

logger = logging.getLogger(__name__)
events = structlog.get_logger("flatstore.store")

# Action fields that default to the logged-in user / their house.
ACTOR_KEYS = ("userId", "fromUserId")
HOUSE_KEYS = ("houseId",)


def summarize(state: StoreState) -> dict[str, Any]:
    """Compact, JSON-ready view of what the current user sees."""
    me = selectors.current_user(state)
    house = selectors.house_for_user(state, me)
    summary: dict[str, Any] = {
        "view": state.view.value,
        "theme": state.theme.value,
        "current_user": None,
        "house": None,
        "members": [],
        "chores": [],
        "counts": {
            "users": len(state.db.users),
            "houses": len(state.db.houses),
            "chores": len(state.db.chores),
            "guests": len(state.db.guests),
            "notes": len(state.db.notes),
            "todo_lists": len(state.db.todo_lists),
            "expenses": len(state.db.expenses),
        },
    }
    if me is not None:
        summary["current_user"] = {
            "id": me.id,
            "name": me.name,
            "email": me.email,
            "status": me.status.value,
            "dnd_until": me.dnd_until,
        }
    if house is not None:
        summary["house"] = {
            "id": house.id,
            "name": house.name,
            "invite_code": house.invite_code,
            "currency": house.currency,
            "admin_id": house.admin_id,
        }
        summary["members"] = [
            {
                "id": u.id,
                "name": u.name,
                "status": u.status.value,
                "admin": u.id == house.admin_id,
            }
            for u in selectors.house_users(state, me)
        ]
        summary["chores"] = [
            {
                "id": c.id,
                "title": c.title,
                "state": c.state.value,
                "assignee_id": c.assignee_id,
                "due_at": c.due_at,
            }
            for c in selectors.house_chores(state, me)
        ]
    return summary


class StoreService:
    """Operations over the snapshot configured in *settings*.

    Args:
        settings: Resolved settings (snapshot location, household options).
        env_factory: Builds the :class:`ReducerEnv` for each operation.
            Defaults to the wall clock and a fresh random source in the
            configured time zone.
    """

    def __init__(
        self,
        settings: FlatstoreSettings,
        *,
        env_factory: Callable[[], ReducerEnv] | None = None,
    ) -> None:
        self._settings = settings
        household = settings.household
        self._env_factory = env_factory or (
            lambda: ReducerEnv.live(tz=household.zone(), note_limit=household.note_limit)
        )
        self._snapshot = SnapshotStore(
            settings.snapshot_file,
            rng=random.Random(),
            note_limit=household.note_limit,
        )

    @property
    def snapshot(self) -> SnapshotStore:
        return self._snapshot

    # --- helpers ---

    def _meta(self, **extra: Any) -> dict[str, Any]:
        return {"snapshot": str(self._snapshot.path), **extra}

    def _snapshot_error(self, op: str, exc: SnapshotError) -> ServiceResult:
        logger.warning("Snapshot unreadable: %s", exc)
        return ServiceResult.failure(op, "SNAPSHOT", str(exc), path=str(exc.path))

    def _save(self, op: str, state: StoreState) -> ServiceResult | None:
        try:
            self._snapshot.save(state)
        except OSError as exc:
            return ServiceResult.failure(op, "IO", f"Cannot write snapshot: {exc}")
        return None

    def _fill_actor(self, state: StoreState, raw: Mapping[str, Any]) -> dict[str, Any]:
        me = selectors.current_user(state)
        filled = dict(raw)
        for key in ACTOR_KEYS:
            if key in filled and not filled[key] and me is not None:
                filled[key] = me.id
        for key in HOUSE_KEYS:
            if key in filled and not filled[key] and me is not None and me.house_id:
                filled[key] = me.house_id
        return filled

    def _commit(
        self,
        op: str,
        before: StoreState,
        after: StoreState,
        action_type: str,
    ) -> ServiceResult:
        if after.toast_kind not in (None, ToastKind.SUCCESS):
            kind = ToastKind(after.toast_kind)
            events.debug("store.rejected", op=op, action=action_type, code=kind.name)
            return ServiceResult.failure(
                op,
                kind.name,
                after.toast or "Action rejected.",
                meta=self._meta(action=action_type),
                action=action_type,
            )
        changed = after.to_envelope() != before.to_envelope()
        events.debug("store.commit", op=op, action=action_type, changed=changed)
        if changed:
            failure = self._save(op, after)
            if failure is not None:
                return failure
        data = summarize(after)
        data["toast"] = after.toast
        data["changed"] = changed
        return ServiceResult(ok=True, op=op, data=data, meta=self._meta(action=action_type))

    # --- operations ---

    def init(self, *, seed: bool | None = None, force: bool = False) -> ServiceResult:
        """Create the snapshot, optionally filled with the demo household."""
        op = "init"
        if self._snapshot.exists() and not force:
            return ServiceResult.failure(
                op,
                "CONFLICT",
                f"Snapshot already exists at {self._snapshot.path}",
                hint="Use --force to overwrite.",
            )
        use_seed = self._settings.store.seed_on_init if seed is None else seed
        state = StoreState()
        if use_seed:
            env = self._env_factory()
            state = normalize_state(
                {"db": seed_db(now=env.now, rng=env.rng)},
                rng=env.rng,
                note_limit=env.note_limit,
            )
        failure = self._save(op, state)
        if failure is not None:
            return failure
        data = summarize(state)
        data["seeded"] = use_seed
        data["path"] = str(self._snapshot.path)
        return ServiceResult(ok=True, op=op, data=data, meta=self._meta())

    def show(self, *, full: bool = False) -> ServiceResult:
        """Summarize the persisted state (or return the whole envelope)."""
        op = "show"
        try:
            state = self._snapshot.load()
        except SnapshotError as exc:
            return self._snapshot_error(op, exc)
        data = summarize(state)
        if full:
            data["envelope"] = state.to_envelope()
        return ServiceResult(ok=True, op=op, data=data, meta=self._meta())

    def dispatch(
        self,
        raw_action: Mapping[str, Any],
        *,
        fill_actor: bool = False,
        op: str = "dispatch",
    ) -> ServiceResult:
        """Apply one untyped action to the persisted state.

        With *fill_actor*, empty ``userId``/``fromUserId``/``houseId``
        fields are filled from the logged-in user.
        """
        try:
            state = self._snapshot.load()
        except SnapshotError as exc:
            return self._snapshot_error(op, exc)
        raw = self._fill_actor(state, raw_action) if fill_actor else dict(raw_action)
        action_type = str(raw.get("type", ""))
        logger.debug("Dispatching %s", action_type or "<untyped>")
        with structlog.contextvars.bound_contextvars(op=op):
            after = dispatch(state, raw, self._env_factory())
        return self._commit(op, state, after, action_type)

    def sync(self, houses: list[Any]) -> ServiceResult:
        """Reconcile a batch of remote house snapshots."""
        op = "sync"
        try:
            state = self._snapshot.load()
        except SnapshotError as exc:
            return self._snapshot_error(op, exc)
        with structlog.contextvars.bound_contextvars(op=op):
            after = reduce(state, SyncRemoteHouses(houses=houses), self._env_factory())
        result = self._commit(op, state, after, "SYNC_REMOTE_HOUSES")
        if result.ok:
            skipped = sum(
                1 for h in houses if not isinstance(h, Mapping) or identity.house_id(h) is None
            )
            warnings = [f"Skipped {skipped} malformed remote house(s)"] if skipped else []
            result = result.model_copy(
                update={
                    "data": {**result.data, "received": len(houses)},
                    "warnings": warnings,
                }
            )
        return result

    def expire_dnd(self) -> ServiceResult:
        """Revert every expired DND status to HOME."""
        op = "expire_dnd"
        try:
            state = self._snapshot.load()
        except SnapshotError as exc:
            return self._snapshot_error(op, exc)
        after = reduce(state, CheckDndExpiry(), self._env_factory())
        before_dnd = {u.id for u in state.db.users if u.status == UserStatus.DND}
        after_dnd = {u.id for u in after.db.users if u.status == UserStatus.DND}
        result = self._commit(op, state, after, "CHECK_DND_EXPIRY")
        if result.ok:
            result = result.model_copy(
                update={"data": {**result.data, "expired": sorted(before_dnd - after_dnd)}}
            )
        return result
