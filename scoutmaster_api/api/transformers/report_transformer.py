"""Transform the internal report format to the frontend's camelCase format."""

from typing import Any, Dict


def _to_camel_case(snake_str: str) -> str:
    """Convert snake_case to camelCase."""
    components = snake_str.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {_to_camel_case(str(k)): _camelize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_camelize(v) for v in value]
    return value


def transform_report_to_frontend(report: Dict[str, Any]) -> Dict[str, Any]:
    """Transform a scouting report to the frontend format.

    Only keys change; values (names, insight text, ids) are left untouched.
    ``win_rate_delta`` and friends become ``winRateDelta``.

    Args:
        report: Report as built by ``scoutmaster.report``

    Returns:
        Report with camelCase keys at every depth
    """
    return _camelize(report)
