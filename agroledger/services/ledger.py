"""Inventory ledger: non-negative running balances with an append-only history.

Every quantity change goes through ``InventoryLedger.record_movement``:

1. load a snapshot of the item (quantity, unit, version);
2. normalise the requested amount into the item's unit;
3. compute the new balance, rejecting it when it would go below zero;
4. compare-and-set the quantity on the observed ``version``.  If another
   writer committed in between the CAS misses and the step restarts from a
   fresh snapshot;
5. append an ``InventoryMovement`` with ``balance_after`` = new balance.

Steps 4 and 5 run in the caller's transaction, so a failure after the CAS
rolls both back.  The storage side is the ``LedgerStore`` protocol; the
SQLAlchemy implementation lives at the bottom of this module.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from agroledger.errors import ConcurrentUpdateError, InsufficientStockError, NotFoundError
from agroledger.models.enums import MovementModuleEnum, MovementOperationEnum
from agroledger.models.inventory import InventoryItem, InventoryMovement
from agroledger.services.units import convert_amount

BALANCE_DECIMALS = 9

logger = structlog.get_logger("agroledger.ledger")


@dataclass(frozen=True, slots=True)
class ItemSnapshot:
	id: uuid.UUID
	owner_id: uuid.UUID
	name: str
	unit: str
	quantity: float
	version: int


@dataclass(frozen=True, slots=True)
class MovementContext:
	"""Links a movement to the activity day that caused it."""

	activity_id: uuid.UUID | None = None
	module: MovementModuleEnum | None = None
	day_index: int | None = None


@dataclass(frozen=True, slots=True)
class MovementRequest:
	item_id: uuid.UUID
	operation: MovementOperationEnum
	amount: float
	unit: str | None = None
	reason: str | None = None
	context: MovementContext | None = None


class LedgerStore(Protocol):
	async def load_item(self, owner_id: uuid.UUID, item_id: uuid.UUID) -> ItemSnapshot | None: ...

	async def compare_and_set(self, snapshot: ItemSnapshot, new_quantity: float) -> bool: ...

	async def append_movement(self, movement: InventoryMovement) -> InventoryMovement: ...


def round_balance(value: float) -> float:
	return round(value, BALANCE_DECIMALS)


def signed_amount(operation: MovementOperationEnum | str, amount: float) -> float:
	if MovementOperationEnum(operation) == MovementOperationEnum.add:
		return float(amount)
	return -float(amount)


def apply_operation(
	item_id: uuid.UUID,
	current: float,
	operation: MovementOperationEnum | str,
	amount: float,
	unit: str,
) -> float:
	"""Return the balance after applying ``operation``; never negative."""
	if amount < 0:
		raise ValueError("movement amount cannot be negative")
	new_balance = round_balance(current + signed_amount(operation, amount))
	if new_balance < 0:
		raise InsufficientStockError(item_id, available=current, requested=amount, unit=unit)
	return new_balance


# ── Replay / reconciliation ─────────────────────────────────────────────────


class MovementRecord(Protocol):
	id: int
	operation: MovementOperationEnum
	amount_in_item_unit: float
	balance_after: float


@dataclass(frozen=True, slots=True)
class ReplayBreak:
	movement_id: int
	expected_balance: float
	recorded_balance: float


@dataclass(slots=True)
class LedgerReplay:
	opening_balance: float
	closing_balance: float
	current_quantity: float
	movement_count: int
	breaks: list[ReplayBreak] = field(default_factory=list)

	@property
	def consistent(self) -> bool:
		return not self.breaks and round_balance(self.closing_balance) == round_balance(self.current_quantity)


def replay_movements(movements: Sequence[MovementRecord], current_quantity: float) -> LedgerReplay:
	"""Re-run ``movements`` (in sequence order) and check every balance_after.

	The opening balance is inferred from the first movement.  A break is
	reported wherever a recorded ``balance_after`` differs from the running
	prefix; replay continues from the recorded value so one bad row does not
	flag every row after it.
	"""
	if not movements:
		return LedgerReplay(
			opening_balance=current_quantity,
			closing_balance=current_quantity,
			current_quantity=current_quantity,
			movement_count=0,
		)

	first = movements[0]
	opening = round_balance(first.balance_after - signed_amount(first.operation, first.amount_in_item_unit))
	running = opening
	breaks: list[ReplayBreak] = []
	for movement in movements:
		expected = round_balance(running + signed_amount(movement.operation, movement.amount_in_item_unit))
		if expected != round_balance(movement.balance_after):
			breaks.append(
				ReplayBreak(
					movement_id=movement.id,
					expected_balance=expected,
					recorded_balance=movement.balance_after,
				)
			)
		running = movement.balance_after

	return LedgerReplay(
		opening_balance=opening,
		closing_balance=running,
		current_quantity=current_quantity,
		movement_count=len(movements),
		breaks=breaks,
	)


# ── Ledger ──────────────────────────────────────────────────────────────────


class InventoryLedger:
	"""Applies movements to items through a ``LedgerStore`` with CAS retries."""

	def __init__(self, store: LedgerStore, max_retries: int = 5):
		self.store = store
		self.max_retries = max(1, max_retries)

	async def record_movement(self, owner_id: uuid.UUID, request: MovementRequest) -> InventoryMovement:
		for attempt in range(1, self.max_retries + 1):
			snapshot = await self.store.load_item(owner_id, request.item_id)
			if snapshot is None:
				raise NotFoundError(f"Inventory item {request.item_id} not found")

			movement_unit = request.unit or snapshot.unit
			normalized = convert_amount(request.amount, movement_unit, snapshot.unit)
			new_balance = apply_operation(
				snapshot.id,
				snapshot.quantity,
				request.operation,
				normalized,
				snapshot.unit,
			)

			if not await self.store.compare_and_set(snapshot, new_balance):
				logger.info(
					"ledger_cas_conflict",
					item_id=str(snapshot.id),
					observed_version=snapshot.version,
					attempt=attempt,
				)
				continue

			context = request.context or MovementContext()
			movement = InventoryMovement(
				owner_id=owner_id,
				item_id=snapshot.id,
				item_name=snapshot.name,
				operation=MovementOperationEnum(request.operation),
				amount=float(request.amount),
				unit=movement_unit,
				amount_in_item_unit=normalized,
				balance_after=new_balance,
				reason=request.reason,
				activity_id=context.activity_id,
				module=context.module,
				day_index=context.day_index,
			)
			movement = await self.store.append_movement(movement)
			logger.info(
				"inventory_movement_recorded",
				item_id=str(snapshot.id),
				operation=str(request.operation),
				amount_in_item_unit=normalized,
				balance_after=new_balance,
			)
			return movement

		raise ConcurrentUpdateError(
			f"Inventory item {request.item_id} changed concurrently {self.max_retries} times; retry the request"
		)

	async def record_batch(
		self,
		owner_id: uuid.UUID,
		requests: Sequence[MovementRequest],
	) -> list[InventoryMovement]:
		"""Apply all additions, then all subtractions.

		Any failure propagates and must abort the caller's transaction, which
		discards the movements already applied by this batch.
		"""
		adds = [r for r in requests if MovementOperationEnum(r.operation) == MovementOperationEnum.add]
		subtracts = [r for r in requests if MovementOperationEnum(r.operation) == MovementOperationEnum.subtract]
		movements: list[InventoryMovement] = []
		for request in [*adds, *subtracts]:
			movements.append(await self.record_movement(owner_id, request))
		return movements


# ── SQLAlchemy store ────────────────────────────────────────────────────────


class SqlLedgerStore:
	"""``LedgerStore`` over an ``AsyncSession``; CAS is a versioned UPDATE."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def load_item(self, owner_id: uuid.UUID, item_id: uuid.UUID) -> ItemSnapshot | None:
		# Column select, not an entity select: the identity map would hand back a
		# stale object after another transaction's commit.
		stmt = select(
			InventoryItem.id,
			InventoryItem.owner_id,
			InventoryItem.name,
			InventoryItem.unit,
			InventoryItem.quantity,
			InventoryItem.version,
		).where(
			InventoryItem.id == item_id,
			InventoryItem.owner_id == owner_id,
			InventoryItem.active.is_(True),
		)
		row = (await self.db.execute(stmt)).one_or_none()
		if row is None:
			return None
		return ItemSnapshot(
			id=row.id,
			owner_id=row.owner_id,
			name=row.name,
			unit=str(row.unit),
			quantity=float(row.quantity),
			version=int(row.version),
		)

	async def compare_and_set(self, snapshot: ItemSnapshot, new_quantity: float) -> bool:
		stmt = (
			update(InventoryItem)
			.where(
				InventoryItem.id == snapshot.id,
				InventoryItem.owner_id == snapshot.owner_id,
				InventoryItem.version == snapshot.version,
			)
			.values(
				quantity=new_quantity,
				version=snapshot.version + 1,
				last_updated=datetime.now(UTC),
			)
			.execution_options(synchronize_session=False)
		)
		result = await self.db.execute(stmt)
		return result.rowcount == 1

	async def append_movement(self, movement: InventoryMovement) -> InventoryMovement:
		self.db.add(movement)
		await self.db.flush()
		await self.db.refresh(movement)
		return movement
