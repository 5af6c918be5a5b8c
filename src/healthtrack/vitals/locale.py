"""User-facing wording: alert templates, chart labels and month abbreviations.

Alert messages are plain ``str.format`` templates with ``{value}`` and
``{unit}`` placeholders.  The Italian catalog is the default; deployments can
switch to English or override single templates from configuration (see
``[locale]`` in ``healthtrack.toml``).
"""

from __future__ import annotations

import dataclasses
import string
from collections.abc import Mapping
from types import MappingProxyType

from healthtrack.vitals.models import ParameterType

_ALLOWED_FIELDS = frozenset({"value", "unit"})


@dataclasses.dataclass(frozen=True)
class Locale:
    """A named catalog of the strings the vitals core renders."""

    name: str
    alert_title: str
    alert_templates: Mapping[ParameterType, str]
    parameter_labels: Mapping[ParameterType, str]
    threshold_label: str
    # Index 0 is January.
    month_abbr: tuple[str, ...]

    def month_label(self, month: int) -> str:
        return self.month_abbr[month - 1]

    def month_number(self, abbr: str) -> int | None:
        """Reverse of :meth:`month_label`; None when *abbr* is not recognised."""
        lowered = abbr.strip().lower()
        for idx, candidate in enumerate(self.month_abbr, start=1):
            if candidate.lower() == lowered:
                return idx
        return None

    def with_templates(self, overrides: Mapping[str, str]) -> Locale:
        """Return a copy with some alert templates replaced.

        Keys are parameter-type wire values (e.g. ``"glucose"``).

        Raises
        ------
        ValueError
            If a key is not a known parameter type or a template references
            a placeholder other than ``{value}`` / ``{unit}``.
        """
        templates = dict(self.alert_templates)
        for key, template in overrides.items():
            member = ParameterType.parse(key)
            if member is None:
                raise ValueError(f"Unknown parameter type in alert template override: {key!r}")
            validate_template(template)
            templates[member] = template
        return dataclasses.replace(self, alert_templates=MappingProxyType(templates))


def validate_template(template: str) -> None:
    """Raise ValueError when *template* uses unsupported placeholders."""
    try:
        fields = {
            field for _, field, _, _ in string.Formatter().parse(template) if field is not None
        }
    except ValueError as exc:
        raise ValueError(f"Malformed alert template {template!r}: {exc}") from exc
    unknown = fields - _ALLOWED_FIELDS
    if unknown:
        raise ValueError(
            f"Alert template {template!r} uses unsupported placeholder(s): "
            f"{', '.join(sorted(unknown))}"
        )


ITALIAN = Locale(
    name="it",
    alert_title="Attenzione",
    alert_templates=MappingProxyType(
        {
            ParameterType.BLOOD_PRESSURE_SYSTOLIC: "Pressione sistolica fuori range: {value} {unit}",
            ParameterType.BLOOD_PRESSURE_DIASTOLIC: (
                "Pressione diastolica fuori range: {value} {unit}"
            ),
            ParameterType.HEART_RATE: "Frequenza cardiaca fuori range: {value} {unit}",
            ParameterType.GLUCOSE: "Livello di glucosio fuori range: {value} {unit}",
        }
    ),
    parameter_labels=MappingProxyType(
        {
            ParameterType.BLOOD_PRESSURE_SYSTOLIC: "Sistolica",
            ParameterType.BLOOD_PRESSURE_DIASTOLIC: "Diastolica",
            ParameterType.HEART_RATE: "Frequenza Cardiaca",
            ParameterType.GLUCOSE: "Livello di Glucosio",
        }
    ),
    threshold_label="Soglia massima",
    month_abbr=(
        "gen", "feb", "mar", "apr", "mag", "giu",
        "lug", "ago", "set", "ott", "nov", "dic",
    ),  # fmt: skip
)

ENGLISH = Locale(
    name="en",
    alert_title="Attention",
    alert_templates=MappingProxyType(
        {
            ParameterType.BLOOD_PRESSURE_SYSTOLIC: "Systolic pressure out of range: {value} {unit}",
            ParameterType.BLOOD_PRESSURE_DIASTOLIC: (
                "Diastolic pressure out of range: {value} {unit}"
            ),
            ParameterType.HEART_RATE: "Heart rate out of range: {value} {unit}",
            ParameterType.GLUCOSE: "Glucose level out of range: {value} {unit}",
        }
    ),
    parameter_labels=MappingProxyType(
        {
            ParameterType.BLOOD_PRESSURE_SYSTOLIC: "Systolic",
            ParameterType.BLOOD_PRESSURE_DIASTOLIC: "Diastolic",
            ParameterType.HEART_RATE: "Heart Rate",
            ParameterType.GLUCOSE: "Glucose Level",
        }
    ),
    threshold_label="Upper threshold",
    month_abbr=(
        "Jan", "Feb", "Mar", "Apr", "May", "Jun",
        "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
    ),  # fmt: skip
)

LOCALES: Mapping[str, Locale] = MappingProxyType({ITALIAN.name: ITALIAN, ENGLISH.name: ENGLISH})
DEFAULT_LOCALE = ITALIAN


def get_locale(name: str) -> Locale:
    """Look up a shipped locale by name (``"it"`` or ``"en"``).

    Raises ValueError for unknown names.
    """
    try:
        return LOCALES[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown locale: {name!r}. Must be one of: {', '.join(sorted(LOCALES))}"
        ) from None
