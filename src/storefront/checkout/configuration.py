"""CheckoutConfiguration aggregate — the administered list of checkout steps.

One configuration exists per store key. Steps are held as their camelCase
JSON documents and parsed into the step union on read, so a step that no
longer validates is skipped instead of breaking checkout. Administrative
edits keep such a document as stored, in place, until it is updated with a
valid step or removed.

The built-in ``delivery`` and ``name`` steps can be edited and reordered but
never removed.
"""

import json
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text
from pydantic import ValidationError as SchemaError

from storefront.checkout.steps import BaseStep, StepType, default_steps, dump_steps, parse_step, parse_steps
from storefront.domain import storefront

logger = structlog.get_logger(__name__)

PROTECTED_STEP_TYPES = (StepType.DELIVERY.value, StepType.NAME.value)


@storefront.event(part_of="CheckoutConfiguration")
class CheckoutStepsChanged:
    __version__ = 1

    configuration_id = Identifier(required=True)
    store_key = String(required=True)
    change = String(required=True, max_length=20)  # added, updated, removed, reordered, reset
    step_id = String(max_length=255)
    step_count = Integer(required=True)


def _coerce_step(raw):
    if isinstance(raw, str):
        raw = json.loads(raw)
    try:
        return parse_step(raw)
    except SchemaError as exc:
        raise ValidationError({"step": [err["msg"] for err in exc.errors()]}) from None


def _field(entry, name):
    if isinstance(entry, BaseStep):
        return getattr(entry, name)
    return entry.get(name) if isinstance(entry, dict) else None


def _dump(entry):
    return dump_steps([entry])[0] if isinstance(entry, BaseStep) else entry


@storefront.aggregate
class CheckoutConfiguration:
    store_key = String(required=True, max_length=100)
    steps = Text()  # JSON: list of step documents
    updated_at = DateTime()

    @classmethod
    def create(cls, store_key, steps=None):
        config = cls(store_key=store_key, updated_at=datetime.now(UTC))
        config._store(default_steps() if steps is None else [_coerce_step(s) for s in steps])
        return config

    def current_steps(self) -> list:
        return parse_steps(self._documents())

    def _documents(self) -> list:
        return json.loads(self.steps) if self.steps else []

    def _entries(self) -> list:
        """Stored steps for editing: parsed where possible, raw documents otherwise."""
        entries = []
        for raw in self._documents():
            try:
                entries.append(parse_step(raw))
            except SchemaError:
                logger.warning(
                    "Keeping unusable checkout step as stored",
                    configuration_id=str(self.id),
                    step_id=_field(raw, "id"),
                    step_type=_field(raw, "type"),
                )
                entries.append(raw)
        return entries

    def _store(self, entries):
        ids = [_field(entry, "id") for entry in entries]
        if len(ids) != len(set(ids)):
            raise ValidationError({"steps": ["Step ids must be unique"]})
        self.steps = json.dumps([_dump(entry) for entry in entries])
        self.updated_at = datetime.now(UTC)

    def _changed(self, change, step_id=None):
        self.raise_(
            CheckoutStepsChanged(
                configuration_id=str(self.id),
                store_key=self.store_key,
                change=change,
                step_id=step_id,
                step_count=len(self.current_steps()),
            )
        )

    def _index_of(self, steps, step_id):
        for index, step in enumerate(steps):
            if _field(step, "id") == step_id:
                return index
        raise ValidationError({"step_id": [f"Unknown step {step_id}"]})

    # -------------------------------------------------------------------
    # Step administration
    # -------------------------------------------------------------------
    def add_step(self, raw_step, position=None):
        step = _coerce_step(raw_step)
        entries = self._entries()
        if any(_field(entry, "id") == step.id for entry in entries):
            raise ValidationError({"step_id": [f"Step {step.id} already exists"]})

        if position is None:
            entries.append(step)
        else:
            entries.insert(max(0, position), step)
        self._store(entries)
        self._changed("added", step.id)
        return step

    def update_step(self, raw_step):
        step = _coerce_step(raw_step)
        entries = self._entries()
        index = self._index_of(entries, step.id)
        current_type = _field(entries[index], "type")
        if current_type in PROTECTED_STEP_TYPES and step.type != current_type:
            raise ValidationError({"type": [f"Step {step.id} must stay a {current_type} step"]})

        entries[index] = step
        self._store(entries)
        self._changed("updated", step.id)
        return step

    def remove_step(self, step_id):
        entries = self._entries()
        index = self._index_of(entries, step_id)
        current_type = _field(entries[index], "type")
        if current_type in PROTECTED_STEP_TYPES:
            raise ValidationError({"step_id": [f"The {current_type} step cannot be removed"]})

        del entries[index]
        self._store(entries)
        self._changed("removed", step_id)

    def reorder(self, step_ids):
        """Put the steps in ``step_ids`` order.

        Every usable step must be listed exactly once. Unusable stored steps
        may be listed too; the ones left out keep their relative order after
        the listed steps.
        """
        entries = self._entries()
        by_id = {_field(entry, "id"): entry for entry in entries}
        usable = {entry.id for entry in entries if isinstance(entry, BaseStep)}
        listed = set(step_ids)
        if len(listed) != len(step_ids) or not usable <= listed or not listed <= set(by_id):
            raise ValidationError({"step_ids": ["Reorder must list every step exactly once"]})

        rest = [entry for entry in entries if _field(entry, "id") not in listed]
        self._store([by_id[step_id] for step_id in step_ids] + rest)
        self._changed("reordered")

    def reset(self):
        self._store(default_steps())
        self._changed("reset")
