# app/core/validation.py
"""
Validation des corps de requête par les modèles pydantic d'entrée des modules.

``validate_payload`` ne lève jamais: les erreurs pydantic sont traduites en
messages lisibles et toutes renvoyées ensemble dans ``ValidationResult``.
``data`` ne contient que les clés envoyées (``exclude_unset``): un PUT partiel
ne touche que ce qui a été fourni.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Mapping

from pydantic import BaseModel, BeforeValidator, ConfigDict, StringConstraints, ValidationError, field_validator

BODY_NOT_OBJECT = "Le corps de la requête doit être un objet JSON"

# chaîne nettoyée des espaces de bord
Text = Annotated[str, StringConstraints(strip_whitespace=True)]


def _decimal_comma(v: Any) -> Any:
    # "89,90" -> "89.90"
    if isinstance(v, str):
        return v.strip().replace(",", ".")
    return v


# nombre saisi à la française accepté
Number = Annotated[float, BeforeValidator(_decimal_comma)]


class InputModel(BaseModel):
    """Base des modèles d'entrée: clés inconnues ignorées, pas d'inf/NaN."""

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_null(cls, v: Any) -> Any:
        # "" ou "   " valent "non renseigné"
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PayloadModel(InputModel):
    """Sous-objet JSON (disponibilités, contact...): clés inconnues refusées."""

    model_config = ConfigDict(extra="forbid")


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


_MESSAGES = {
    "missing": "{name} est requis",
    "string_type": "{name} doit être une chaîne de caractères",
    "string_too_long": "{name} ne doit pas dépasser {max_length} caractères",
    "string_too_short": "{name} doit contenir au moins {min_length} caractères",
    "literal_error": "{name} doit être: {choices}",
    "int_type": "{name} doit être un entier",
    "int_parsing": "{name} doit être un entier",
    "int_from_float": "{name} doit être un entier",
    "float_type": "{name} doit être un nombre",
    "float_parsing": "{name} doit être un nombre",
    "finite_number": "{name} doit être un nombre fini",
    "greater_than": "{name} doit être supérieur à {gt}",
    "greater_than_equal": "{name} doit être supérieur ou égal à {ge}",
    "less_than_equal": "{name} doit être inférieur ou égal à {le}",
    "date_type": "{name} doit être une date au format AAAA-MM-JJ",
    "date_parsing": "{name} doit être une date au format AAAA-MM-JJ",
    "date_from_datetime_parsing": "{name} doit être une date au format AAAA-MM-JJ",
    "date_from_datetime_inexact": "{name} doit être une date au format AAAA-MM-JJ",
    "bool_type": "{name} doit être un booléen",
    "bool_parsing": "{name} doit être un booléen",
    "list_type": "{name} doit être une liste",
    "dict_type": "{name} doit être un objet",
    "model_type": "{name} doit être un objet",
    "extra_forbidden": "{name} n'est pas un champ autorisé",
}


def describe_error(err: Mapping[str, Any], skip: tuple[str, ...] = ()) -> str:
    """Une entrée de ``ValidationError.errors()`` -> message en français."""
    loc = [str(p) for p in err.get("loc", ()) if p not in skip]
    name = ".".join(loc) or "corps"
    etype = err.get("type", "")
    ctx = err.get("ctx") or {}

    if etype == "value_error":
        if "error" in ctx:
            return str(ctx["error"])
        # EmailStr: PydanticCustomError avec ctx {"reason": ...}
        if "reason" in ctx:
            return f"{name} doit être une adresse e-mail valide"
    if etype.endswith("_type") and err.get("input", ...) is None:
        return f"{name} est requis"

    template = _MESSAGES.get(etype)
    if template is None:
        return f"{name}: {err.get('msg')}"
    choices = str(ctx.get("expected", "")).replace("'", "").replace(" or ", ", ")
    return template.format_map({**ctx, "name": name, "choices": choices})


def validate_payload(model: type[BaseModel], payload: Any) -> ValidationResult:
    res = ValidationResult()
    if not isinstance(payload, Mapping):
        res.errors.append(BODY_NOT_OBJECT)
        return res
    try:
        obj = model.model_validate(dict(payload))
    except ValidationError as exc:
        res.errors = [describe_error(e) for e in exc.errors()]
        return res
    res.data = obj.model_dump(exclude_unset=True)
    return res
