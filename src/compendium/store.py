"""
In-memory domain store for Compendium.

Holds notes, appointments and goals plus sync status flags. All
mutations are synchronous; persistence is the sync layer's job.
"""

from datetime import date
from typing import Any, TypeVar

from pydantic import BaseModel

from compendium.helpers import parse_date, utc_now_iso
from compendium.models import (
    Appointment,
    AppointmentPatch,
    Goal,
    GoalPatch,
    Note,
    NotePatch,
    Snapshot,
)

EntityT = TypeVar("EntityT", Note, Appointment, Goal)


def _coerce(model: type[BaseModel], value: Any) -> Any:
    """Accept either a model instance or a plain dict."""
    if isinstance(value, model):
        return value
    return model.model_validate(value)


def _update(
    items: list[EntityT],
    entity_id: str,
    patch_model: type[BaseModel],
    patch: BaseModel | dict[str, Any] | None,
    fields: dict[str, Any],
    stamp: bool,
) -> EntityT | None:
    """
    Replace the first entity matching entity_id with a patched copy.

    The merged entity is validated as a whole before it is swapped in,
    so a rejected patch leaves the stored entity untouched.
    """
    if patch is not None and fields:
        raise TypeError("Pass either a patch or keyword fields, not both")

    for index, entity in enumerate(items):
        if entity.id == entity_id:
            break
    else:
        return None

    changes = _coerce(patch_model, patch if patch is not None else fields)
    merged = entity.model_dump()
    merged.update(changes.model_dump(include=changes.model_fields_set))
    if stamp:
        merged["updated_at"] = utc_now_iso()

    updated = type(entity).model_validate(merged)
    items[index] = updated
    return updated


def _find(items: list[EntityT], entity_id: str) -> EntityT | None:
    for item in items:
        if item.id == entity_id:
            return item
    return None


class CompendiumStore:
    """Mutable collections of notes, appointments and goals."""

    def __init__(self):
        self.notes: list[Note] = []
        self.appointments: list[Appointment] = []
        self.goals: list[Goal] = []
        self.is_loading = False
        self.is_saving = False
        self.last_synced_at: str | None = None

    # Notes

    @property
    def all_notes(self) -> tuple[Note, ...]:
        return tuple(self.notes)

    def get_note(self, note_id: str) -> Note | None:
        return _find(self.notes, note_id)

    def add_note(self, note: Note | dict[str, Any]) -> Note:
        note = _coerce(Note, note)
        self.notes.append(note)
        return note

    def update_note(
        self, note_id: str, patch: NotePatch | dict[str, Any] | None = None, **fields: Any
    ) -> Note | None:
        """Merge set fields into the note and stamp updated_at. None if not found."""
        return _update(self.notes, note_id, NotePatch, patch, fields, stamp=True)

    def delete_note(self, note_id: str) -> None:
        self.notes = [n for n in self.notes if n.id != note_id]

    # Appointments

    @property
    def all_appointments(self) -> tuple[Appointment, ...]:
        return tuple(self.appointments)

    @property
    def upcoming_appointments(self) -> list[Appointment]:
        """Appointments dated today or later, earliest first."""
        return self.appointments_from(date.today())

    def appointments_from(self, day: date) -> list[Appointment]:
        """Appointments on or after day, sorted by date (stable on ties)."""
        dated = []
        for appointment in self.appointments:
            when = parse_date(appointment.date)
            if when is not None and when >= day:
                dated.append((when, appointment))
        dated.sort(key=lambda pair: pair[0])
        return [appointment for _, appointment in dated]

    def get_appointment(self, appointment_id: str) -> Appointment | None:
        return _find(self.appointments, appointment_id)

    def add_appointment(self, appointment: Appointment | dict[str, Any]) -> Appointment:
        appointment = _coerce(Appointment, appointment)
        self.appointments.append(appointment)
        return appointment

    def update_appointment(
        self,
        appointment_id: str,
        patch: AppointmentPatch | dict[str, Any] | None = None,
        **fields: Any,
    ) -> Appointment | None:
        """Merge set fields into the appointment. None if not found."""
        return _update(
            self.appointments, appointment_id, AppointmentPatch, patch, fields, stamp=False
        )

    def delete_appointment(self, appointment_id: str) -> None:
        self.appointments = [a for a in self.appointments if a.id != appointment_id]

    # Goals

    @property
    def all_goals(self) -> tuple[Goal, ...]:
        return tuple(self.goals)

    def get_goal(self, goal_id: str) -> Goal | None:
        return _find(self.goals, goal_id)

    def add_goal(self, goal: Goal | dict[str, Any]) -> Goal:
        goal = _coerce(Goal, goal)
        self.goals.append(goal)
        return goal

    def update_goal(
        self, goal_id: str, patch: GoalPatch | dict[str, Any] | None = None, **fields: Any
    ) -> Goal | None:
        """Merge set fields into the goal and stamp updated_at. None if not found."""
        return _update(self.goals, goal_id, GoalPatch, patch, fields, stamp=True)

    def delete_goal(self, goal_id: str) -> None:
        self.goals = [g for g in self.goals if g.id != goal_id]

    # Sync

    def load_from_data(self, data: Snapshot | dict[str, Any]) -> None:
        """
        Replace collections from a snapshot.

        Only collections present in the snapshot are replaced; the
        sync timestamp is always refreshed.
        """
        snapshot = _coerce(Snapshot, data)
        if snapshot.notes is not None:
            self.notes = list(snapshot.notes)
        if snapshot.appointments is not None:
            self.appointments = list(snapshot.appointments)
        if snapshot.goals is not None:
            self.goals = list(snapshot.goals)
        self.last_synced_at = utc_now_iso()

    def get_data_for_save(self) -> Snapshot:
        """Snapshot of the current collections (new lists, same entities)."""
        return Snapshot.model_construct(
            notes=list(self.notes),
            appointments=list(self.appointments),
            goals=list(self.goals),
        )

    def clear_all(self) -> None:
        self.notes = []
        self.appointments = []
        self.goals = []
        self.last_synced_at = None
