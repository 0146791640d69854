"""Selection Store — the wizard's per-step, per-instance option choices.

Shape: ``step_id -> (instance_id | "_global") -> ordered option ids``.
Selections are kept in write order so readers see them exactly as the
single writer (the shopper) made them.
"""

from collections.abc import Iterable, Iterator

from protean.exceptions import ValidationError

GLOBAL_KEY = "_global"
NONE_OPTION = "none"


class SelectionStore:
    def __init__(self, data: dict | None = None) -> None:
        self._data: dict[str, dict[str, list[str]]] = {}
        for step_id, per_instance in (data or {}).items():
            for instance_id, option_ids in per_instance.items():
                self.set(step_id, instance_id, option_ids)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def selected(self, step_id: str, instance_id: str = GLOBAL_KEY) -> tuple[str, ...]:
        return tuple(self._data.get(step_id, {}).get(instance_id, ()))

    def for_step(self, step_id: str) -> dict[str, tuple[str, ...]]:
        return {key: tuple(ids) for key, ids in self._data.get(step_id, {}).items()}

    def step_ids(self) -> list[str]:
        return list(self._data)

    def instance_keys(self) -> set[str]:
        return {key for per_instance in self._data.values() for key in per_instance}

    def __iter__(self) -> Iterator[tuple[str, str, tuple[str, ...]]]:
        for step_id, per_instance in self._data.items():
            for instance_id, option_ids in per_instance.items():
                yield step_id, instance_id, tuple(option_ids)

    def __bool__(self) -> bool:
        return any(ids for per_instance in self._data.values() for ids in per_instance.values())

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def set(self, step_id: str, instance_id: str, option_ids: Iterable[str]) -> None:
        """Replace the selection for one key (last writer wins)."""
        ordered = list(dict.fromkeys(str(o) for o in option_ids))
        if not ordered:
            self._discard(step_id, instance_id)
            return
        self._data.setdefault(step_id, {})[instance_id] = ordered

    def toggle(self, step, instance_id: str, option_id: str, is_available=None) -> tuple[str, ...]:
        """Select or deselect an option of ``step`` for one instance.

        Single-select steps replace the current choice; multi-select steps
        add or remove, honouring ``max_selections``. Unavailable options
        (configured stock of zero, or a live counter that ``is_available``
        reports as exhausted) cannot be selected. Deselecting is always
        allowed.
        """
        current = list(self.selected(step.id, instance_id))

        if option_id in current:
            current.remove(option_id)
            self.set(step.id, instance_id, current)
            return tuple(current)

        if option_id != NONE_OPTION:
            option = step.option(option_id)
            if option is not None and not option.is_available:
                raise ValidationError({"option_id": [f"Option {option.name} is unavailable"]})
            if is_available is not None and not is_available(option_id):
                name = option.name if option is not None else option_id
                raise ValidationError({"option_id": [f"Option {name} is sold out"]})

        if not step.multi_select or option_id == NONE_OPTION:
            current = [option_id]
        else:
            current = [o for o in current if o != NONE_OPTION]
            if step.max_selections is not None and len(current) >= step.max_selections:
                raise ValidationError(
                    {"option_id": [f"At most {step.max_selections} selections allowed for {step.title}"]}
                )
            current.append(option_id)

        self.set(step.id, instance_id, current)
        return tuple(current)

    def drop_instance(self, instance_id: str) -> None:
        """Forget every selection made for a removed cart instance."""
        for step_id in list(self._data):
            self._discard(step_id, instance_id)

    def clear_step(self, step_id: str) -> None:
        self._data.pop(step_id, None)

    def prune(self, live_instance_ids: Iterable[str], applicable_step_ids: Iterable[str]) -> None:
        """Drop keys for instances no longer in the cart and steps no longer shown."""
        live = set(live_instance_ids) | {GLOBAL_KEY}
        applicable = set(applicable_step_ids)
        for step_id in list(self._data):
            if step_id not in applicable:
                del self._data[step_id]
                continue
            for instance_id in list(self._data[step_id]):
                if instance_id not in live:
                    self._discard(step_id, instance_id)

    def clear(self) -> None:
        self._data.clear()

    def to_dict(self) -> dict[str, dict[str, list[str]]]:
        return {step_id: {k: list(v) for k, v in per_instance.items()} for step_id, per_instance in self._data.items()}

    def _discard(self, step_id: str, instance_id: str) -> None:
        per_instance = self._data.get(step_id)
        if per_instance is None:
            return
        per_instance.pop(instance_id, None)
        if not per_instance:
            del self._data[step_id]
