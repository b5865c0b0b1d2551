"""Validation of user-supplied run options."""

import json
import re
from typing import Any, Dict, Optional, Union
import click
from pydantic import ValidationError
from .models import ScreenDimensions, ScreenPreset

API_KEY_PREFIX = "qa_live_"
API_KEY_HELP = "Get your API key at: https://runhuman.com/playground"

_DIMENSIONS = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


def parse_api_key(value: str) -> str:
    if not value.startswith(API_KEY_PREFIX):
        raise click.BadParameter(
            f'Invalid API key format. API key must start with "{API_KEY_PREFIX}". {API_KEY_HELP}'
        )
    return value


def parse_output_schema(value: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode the output schema, which must be a JSON object."""
    if value is None or not value.strip():
        return None
    try:
        schema = json.loads(value)
    except ValueError as e:
        raise click.BadParameter(f"Must be valid JSON. {e}")
    if not isinstance(schema, dict):
        raise click.BadParameter("Must be a JSON object")
    return schema


def parse_max_extension(value: Optional[str]) -> Optional[Union[int, bool]]:
    """An integer number of minutes, or "false" for no cap."""
    if value is None or value == "":
        return None
    if value.strip().lower() == "false":
        return False
    try:
        minutes = int(value)
    except ValueError:
        raise click.BadParameter('Must be a number or "false"')
    if minutes < 0:
        raise click.BadParameter("Must not be negative")
    return minutes


def parse_screen_size(value: Optional[str]) -> Optional[Union[ScreenPreset, ScreenDimensions]]:
    """A preset name, WIDTHxHEIGHT, or a JSON object with width and height."""
    if value is None or not value.strip():
        return None
    text = value.strip()

    try:
        return ScreenPreset(text.lower())
    except ValueError:
        pass

    match = _DIMENSIONS.match(text)
    if match:
        data: Any = {"width": int(match.group(1)), "height": int(match.group(2))}
    else:
        try:
            data = json.loads(text)
        except ValueError:
            presets = ", ".join(p.value for p in ScreenPreset)
            raise click.BadParameter(
                f"Must be one of {presets}, WIDTHxHEIGHT or a JSON object"
            )

    try:
        return ScreenDimensions.model_validate(data)
    except ValidationError:
        raise click.BadParameter(
            "Width must be between 320 and 3840, height between 240 and 2160"
        )
