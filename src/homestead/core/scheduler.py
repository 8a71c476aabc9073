"""
NPC scheduler: the per-tick state machine.

Every tick, each NPC is advanced one step through

    IDLE -> (MOVING ->)* WORKING -> IDLE | RETURNING_HOME -> IDLE

Autonomous NPCs are driven by their profession behaviour and the work
schedule. Player-controlled NPCs only change state through the command
methods (``move``, ``request_manual_work``, ``stop_work``), but a task they
started keeps progressing here.

Movement is one orthogonal tile per step. A step is applied immediately and
``move_completes_at`` marks the end of the step window; no further step is
taken until that timestamp passes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

import numpy as np

from homestead.core.agent import (
    Animation,
    ControlMode,
    NPCState,
    Profession,
    WorkTask,
)
from homestead.core.grid import (
    ORTHOGONAL_DELTAS,
    Direction,
    Position,
    direction_delta,
    is_valid_position,
    step_toward,
    valid_neighbors,
)
from homestead.core.results import ActionResult, FailureReason

if TYPE_CHECKING:
    from homestead.core.agent import NPC
    from homestead.core.config import SimulationConfig
    from homestead.core.house import HouseDirectory
    from homestead.core.inventory import CarryCapacityModel
    from homestead.core.schedule import SchedulePolicy
    from homestead.professions.registry import ProfessionRegistry

logger = logging.getLogger(__name__)

WALK_ANIMATION = "walking"


class NPCScheduler:
    """
    Drives NPC behaviour one tick at a time.

    All collaborators are injected. The scheduler owns only the manual-work
    cooldown table and the timestamp of the previous tick.
    """

    def __init__(
        self,
        config: SimulationConfig,
        professions: ProfessionRegistry,
        inventory: CarryCapacityModel,
        houses: HouseDirectory,
        schedules: SchedulePolicy,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.config = config
        self.professions = professions
        self.inventory = inventory
        self.houses = houses
        self.schedules = schedules
        self.rng = rng if rng is not None else np.random.default_rng(config.random_seed)

        # npc_id -> timestamp at which manual work is allowed again
        self._cooldowns: dict[str, int] = {}
        # Last refused deposit per NPC; retried only once pack or house changes
        self._refused_deposits: dict[str, tuple] = {}
        self._last_tick: int | None = None

    # ==================================================================
    # Tick
    # ==================================================================

    def tick(self, npcs: Iterable[NPC], now: int, hour: float) -> None:
        """Advance every NPC by one step at simulation time *now*."""
        delta = 0 if self._last_tick is None else max(0, now - self._last_tick)
        self._last_tick = now
        self.prune_cooldowns(now)

        for npc in list(npcs):
            self.update_npc(npc, now, hour, delta)

    def update_npc(self, npc: NPC, now: int, hour: float, delta: int = 0) -> None:
        """Advance a single NPC. *delta* is the time since the last tick."""
        if npc.state == NPCState.WORKING and npc.current_task is not None:
            npc.statistics.time_worked += delta

        self._complete_movement(npc, now)
        if npc.animation is not None and not npc.animation.is_active(now):
            npc.animation = None

        if not npc.is_autonomous:
            if npc.state == NPCState.WORKING:
                self._advance_work(npc, now)
            return

        if not self.schedules.should_work(npc.id, hour):
            self._handle_off_hours(npc, now)
            return

        if npc.is_moving:
            return

        if npc.state == NPCState.RETURNING_HOME:
            self._advance_return_home(npc, now)
        elif npc.state == NPCState.WORKING:
            self._advance_work(npc, now)
        else:
            self._seek_work(npc, now)

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def movement_duration(self, npc: NPC) -> int:
        """Length of one step window; overweight NPCs walk slower."""
        duration = self.config.movement_duration_ms
        if self.inventory.is_overweight(npc):
            penalty = self.config.overweight_speed_penalty
            if penalty > 0:
                duration = int(duration / penalty)
        return duration

    def _complete_movement(self, npc: NPC, now: int) -> None:
        if npc.is_moving and now >= npc.move_completes_at:
            npc.is_moving = False
        if not npc.is_moving and npc.state == NPCState.MOVING:
            npc.state = NPCState.IDLE

    def _step(self, npc: NPC, target: Position, now: int) -> bool:
        """Move *npc* one tile to *target* and open a step window."""
        if npc.is_moving or not is_valid_position(target, self.config.grid_size):
            return False

        dx, dz = target.x - npc.position.x, target.z - npc.position.z
        npc.position = target
        npc.is_moving = True
        npc.move_completes_at = now + self.movement_duration(npc)
        npc.last_movement = now
        npc.last_move_direction = (dx, dz)
        npc.statistics.distance_traveled += abs(dx) + abs(dz)
        if npc.state != NPCState.WORKING:
            npc.animation = Animation(WALK_ANIMATION, now, npc.move_completes_at - now)
        return True

    def _idle_wander(self, npc: NPC, now: int) -> None:
        """Occasional random step for NPCs with nothing to do."""
        if npc.is_moving or now - npc.last_movement < self.config.idle_wander_interval_ms:
            return
        npc.last_movement = now
        if self.rng.random() >= self.config.idle_wander_chance:
            return

        dx, dz = ORTHOGONAL_DELTAS[int(self.rng.integers(len(ORTHOGONAL_DELTAS)))]
        if self._step(npc, npc.position.offset(dx, dz), now):
            npc.state = NPCState.MOVING

    # ------------------------------------------------------------------
    # Work
    # ------------------------------------------------------------------

    def _seek_work(self, npc: NPC, now: int) -> None:
        behavior = self.professions.get(npc.profession)
        if behavior is None:
            self._idle_wander(npc, now)
            return

        task = behavior.find_work(npc)
        if task is None:
            npc.current_target_id = None
            npc.target_position = None
            self._idle_wander(npc, now)
            return

        if task.target_id != npc.current_target_id:
            npc.statistics.tasks_assigned += 1
            npc.current_target_id = task.target_id
        npc.target_position = task.target_position

        if not task.requires_movement:
            self._start_task(npc, task, now)
            return

        next_pos = step_toward(npc.position, task.target_position)
        if next_pos == npc.position:
            neighbors = valid_neighbors(npc.position, self.config.grid_size)
            if not neighbors:
                return
            next_pos = neighbors[0]
        if self._step(npc, next_pos, now):
            npc.state = NPCState.MOVING

    def _start_task(self, npc: NPC, task: WorkTask, now: int) -> None:
        npc.current_task = task
        npc.current_target_id = task.target_id
        npc.target_position = task.target_position
        npc.state = NPCState.WORKING
        npc.last_action_time = now
        logger.debug("%s started %s on %s", npc.id, task.type.value, task.target_id)

    def _advance_work(self, npc: NPC, now: int) -> None:
        task = npc.current_task
        if task is None:
            npc.state = NPCState.IDLE
            return

        behavior = self.professions.get(npc.profession)
        if behavior is None or behavior.is_work_done(npc, task):
            self._finish_task(npc, NPCState.IDLE)
            return

        if now - npc.last_action_time < behavior.work_interval_ms:
            return

        result = behavior.do_work(npc, task, now)
        if not result.success:
            logger.debug(
                "%s abandoned %s: %s", npc.id, task.target_id,
                result.reason.value if result.reason else "unknown",
            )
            self._finish_task(npc, NPCState.IDLE)
            return

        npc.statistics.work_completed += task.advance(result.progress_made)
        npc.last_action_time = now
        if result.animation is not None:
            npc.animation = result.animation

        if result.completed:
            if result.yielded:
                logger.info("%s finished %s, gathered %s", npc.id, task.target_id, result.yielded)
            elif result.reason is not None:
                logger.info("%s finished %s but kept nothing: %s",
                            npc.id, task.target_id, result.reason.value)
            self._finish_task(npc, result.new_state or NPCState.IDLE)

    def _finish_task(self, npc: NPC, next_state: NPCState) -> None:
        npc.current_task = None
        npc.current_target_id = None
        npc.target_position = None

        if next_state == NPCState.RETURNING_HOME:
            # Player-controlled NPCs are walked home by the player
            if npc.is_autonomous and self.houses.home_position(npc) is not None:
                npc.state = NPCState.RETURNING_HOME
                return
            next_state = NPCState.IDLE
        if next_state == NPCState.WORKING:
            next_state = NPCState.IDLE
        npc.state = next_state

    # ------------------------------------------------------------------
    # Home
    # ------------------------------------------------------------------

    def _handle_off_hours(self, npc: NPC, now: int) -> None:
        """Outside work hours: drop any task and head home."""
        if npc.current_task is not None:
            logger.debug("%s stops %s for the day", npc.id, npc.current_task.target_id)
            npc.current_task = None
            npc.animation = None
        npc.current_target_id = None
        npc.target_position = None

        home = self.houses.home_position(npc)
        if home is None:
            npc.state = NPCState.MOVING if npc.is_moving else NPCState.IDLE
            return
        if npc.position == home and not npc.is_moving:
            self.deposit_at_home(npc)
            npc.state = NPCState.IDLE
            return

        npc.state = NPCState.RETURNING_HOME
        self._advance_return_home(npc, now)

    def _advance_return_home(self, npc: NPC, now: int) -> None:
        if npc.is_moving:
            return

        home = self.houses.home_position(npc)
        if home is None:
            logger.debug("%s cannot return home: %s", npc.id, FailureReason.NO_HOME_ASSIGNED.value)
            npc.state = NPCState.IDLE
            return

        if npc.position == home:
            self.deposit_at_home(npc)
            npc.state = NPCState.IDLE
            return

        if not self._step(npc, step_toward(npc.position, home), now):
            npc.state = NPCState.IDLE

    def deposit_at_home(self, npc: NPC) -> bool:
        """
        Move every depositable item from the NPC's pack into its house.

        All or nothing: if the house cannot take everything, nothing moves
        and the NPC keeps its pack. Returns True when something was stored.
        """
        if npc.house_id is None:
            return False
        deposits = self.inventory.house_deposits(npc)
        if not deposits:
            return False

        amounts: dict[str, int] = {}
        for bucket, qty in deposits.values():
            amounts[bucket] = amounts.get(bucket, 0) + qty

        house = self.houses.get(npc.house_id)
        attempt = (npc.house_id, tuple(sorted(amounts.items())),
                   house.remaining_capacity if house else None)
        if self._refused_deposits.get(npc.id) == attempt:
            return False
        if not self.houses.add_resources(npc.house_id, amounts):
            self._refused_deposits[npc.id] = attempt
            return False
        self._refused_deposits.pop(npc.id, None)

        for item_id, (_, qty) in deposits.items():
            self.inventory.remove_item(npc, item_id, qty)
        logger.info("%s deposited %s at %s", npc.id, amounts, npc.house_id)
        return True

    # ==================================================================
    # Player commands
    # ==================================================================

    def move(self, npc: NPC, direction: Direction | str | tuple[int, int], now: int) -> ActionResult:
        """Step *npc* one tile in *direction*."""
        delta = direction_delta(direction)
        if delta is None:
            return ActionResult.fail(
                FailureReason.INVALID_POSITION, f"Unknown direction: {direction!r}",
            )
        if npc.is_moving:
            return ActionResult.fail(FailureReason.ALREADY_MOVING)

        target = npc.position.offset(*delta)
        if not is_valid_position(target, self.config.grid_size):
            return ActionResult.fail(
                FailureReason.INVALID_POSITION,
                f"({target.x}, {target.z}) is outside the world",
            )

        if npc.state == NPCState.WORKING:
            npc.current_task = None
            npc.animation = None
        npc.current_target_id = None
        npc.target_position = None

        self._step(npc, target, now)
        npc.state = NPCState.MOVING
        return ActionResult.ok(f"Moved to ({target.x}, {target.z})")

    def request_manual_work(self, npc: NPC, now: int) -> ActionResult:
        """
        Start work on an adjacent target for a player-controlled NPC.

        Rejected while the NPC's manual-work cooldown is running; a rejected
        request never changes the NPC.
        """
        remaining = self.cooldown_remaining(npc.id, now)
        if remaining > 0:
            return ActionResult.fail(
                FailureReason.COOLDOWN_ACTIVE, f"Cooldown active: {remaining}ms remaining",
            )
        if npc.control_mode != ControlMode.CONTROLLED:
            return ActionResult.fail(FailureReason.NOT_CONTROLLED)
        if npc.profession == Profession.NONE:
            return ActionResult.fail(FailureReason.NO_PROFESSION)
        if npc.state == NPCState.WORKING:
            return ActionResult.fail(FailureReason.ALREADY_WORKING)
        if npc.is_moving:
            return ActionResult.fail(FailureReason.ALREADY_MOVING)

        behavior = self.professions.get(npc.profession)
        if behavior is None:
            return ActionResult.fail(FailureReason.NO_PROFESSION)

        task = behavior.find_adjacent_work(npc)
        if task is None:
            return ActionResult.fail(FailureReason.NO_ADJACENT_TARGET)

        self._start_task(npc, task, now)
        npc.statistics.tasks_assigned += 1
        self._cooldowns[npc.id] = now + behavior.cooldown_ms
        return ActionResult.ok(f"Started {task.type.value} on {task.target_id}")

    def stop_work(self, npc: NPC) -> ActionResult:
        if npc.state != NPCState.WORKING:
            return ActionResult.fail(FailureReason.NOT_WORKING)
        npc.current_task = None
        npc.current_target_id = None
        npc.target_position = None
        npc.animation = None
        npc.state = NPCState.IDLE
        return ActionResult.ok("Stopped working")

    def set_control_mode(self, npc: NPC, mode: ControlMode | str) -> ActionResult:
        """
        Hand an NPC to the player or back to the scheduler.

        Taking control cancels any walk toward a target or home; a task
        already in progress keeps running.
        """
        try:
            mode = ControlMode(mode)
        except ValueError:
            return ActionResult.fail(FailureReason.INVALID_MODE, f"Unknown control mode '{mode}'")
        if npc.control_mode == mode:
            return ActionResult.ok(f"Already {mode.value}")

        npc.control_mode = mode
        if mode == ControlMode.CONTROLLED:
            if npc.state == NPCState.RETURNING_HOME:
                npc.state = NPCState.MOVING if npc.is_moving else NPCState.IDLE
            if npc.state != NPCState.WORKING:
                npc.current_target_id = None
                npc.target_position = None
        logger.info("%s is now %s", npc.id, mode.value)
        return ActionResult.ok(f"Control mode set to {mode.value}")

    # ------------------------------------------------------------------
    # Cooldowns
    # ------------------------------------------------------------------

    def cooldown_remaining(self, npc_id: str, now: int) -> int:
        expiry = self._cooldowns.get(npc_id)
        if expiry is None:
            return 0
        return max(0, expiry - now)

    def prune_cooldowns(self, now: int) -> None:
        for npc_id in [k for k, expiry in self._cooldowns.items() if expiry <= now]:
            del self._cooldowns[npc_id]

    def forget(self, npc_id: str) -> None:
        """Drop scheduler state for a removed NPC."""
        self._cooldowns.pop(npc_id, None)
        self._refused_deposits.pop(npc_id, None)
        self.schedules.remove(npc_id)
