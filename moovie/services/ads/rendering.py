# moovie/services/ads/rendering.py
from __future__ import annotations

"""
Placement markup (Jinja2).

Templates live in `templates/ads/`. Everything is autoescaped except the ad
payload, which is wrapped in `Markup` so third-party markup reaches the page
byte-for-byte (never escaped or parsed).
"""

from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

TEMPLATE_DIR = Path(__file__).parent / "templates"

_jinja_env: Optional[Environment] = None


def _jinja() -> Environment:
    global _jinja_env
    if _jinja_env is None:
        _jinja_env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(enabled_extensions=("html",)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _jinja_env


def render_placement(
    template: str,
    *,
    ad_type: str,
    payload: str,
    position: Optional[str] = None,
    label: Optional[str] = None,
    css_class: str = "",
) -> Markup:
    html = _jinja().get_template(template).render(
        ad_type=ad_type,
        position=position,
        label=label,
        css_class=css_class,
        payload=Markup(payload),
    )
    return Markup(html)


__all__ = ["render_placement", "TEMPLATE_DIR"]
