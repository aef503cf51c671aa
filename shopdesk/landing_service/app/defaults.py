"""Built-in landing document written by a reset."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any

DEFAULT_BRAND_NAME = "Dashboard Application"
DEFAULT_ACCENT_COLOR = "oklch(0.5 0.2 250)"

_DEFAULT_SECTIONS: list[dict[str, Any]] = [
    {
        "id": "hero-1",
        "type": "hero",
        "enabled": True,
        "order": 1,
        "data": {
            "headline": "Welcome to Our Platform",
            "subheadline": "Build amazing things with our powerful tools",
            "primaryCta": {"text": "Get Started", "link": "/signup", "linkType": "url"},
            "secondaryCta": {"text": "Learn More", "link": "/about", "linkType": "url"},
            "backgroundType": "gradient",
            "backgroundColor": DEFAULT_ACCENT_COLOR,
            "textAlignment": "center",
            "height": "large",
        },
    },
    {
        "id": "features-1",
        "type": "features",
        "enabled": True,
        "order": 2,
        "data": {
            "title": "Our Features",
            "subtitle": "Everything you need to succeed",
            "layout": "grid",
            "columns": 3,
            "features": [
                {
                    "id": "feature-1",
                    "icon": "zap",
                    "title": "Fast Performance",
                    "description": "Lightning-fast load times and smooth interactions",
                    "order": 1,
                },
                {
                    "id": "feature-2",
                    "icon": "shield",
                    "title": "Secure by Default",
                    "description": "Enterprise-grade security built into every feature",
                    "order": 2,
                },
                {
                    "id": "feature-3",
                    "icon": "users",
                    "title": "Team Collaboration",
                    "description": "Work together seamlessly with your team",
                    "order": 3,
                },
            ],
        },
    },
    {
        "id": "cta-1",
        "type": "cta",
        "enabled": True,
        "order": 3,
        "data": {
            "title": "Ready to Get Started?",
            "description": "Join thousands of users already using our platform",
            "primaryCta": {"text": "Sign Up Now", "link": "/signup", "linkType": "url"},
            "backgroundColor": DEFAULT_ACCENT_COLOR,
            "textColor": "oklch(1 0 0)",
            "alignment": "center",
        },
    },
    {
        "id": "footer-1",
        "type": "footer",
        "enabled": True,
        "order": 99,
        "data": {
            "companyName": DEFAULT_BRAND_NAME,
            "description": "Professional dashboard application",
            "navLinks": [
                {"label": "About", "url": "/about", "linkType": "url", "order": 1},
                {"label": "Contact", "url": "/contact", "linkType": "url", "order": 2},
            ],
            "socialLinks": [
                {"platform": "twitter", "url": "https://twitter.com", "icon": "twitter"},
                {"platform": "github", "url": "https://github.com", "icon": "github"},
            ],
            "copyright": "",
            "showNewsletter": False,
        },
    },
]

_DEFAULT_SETTINGS: dict[str, Any] = {
    "theme": {
        "primaryColor": DEFAULT_ACCENT_COLOR,
        "secondaryColor": "oklch(0.6 0.15 200)",
    },
    "layout": {
        "maxWidth": "container",
        "spacing": "normal",
    },
    "seo": {
        "title": DEFAULT_BRAND_NAME,
        "description": "Professional dashboard application",
        "keywords": "dashboard, admin, management",
    },
}


def copyright_line(brand_name: str, year: int | None = None) -> str:
    year = year or datetime.now(timezone.utc).year
    return f"© {year} {brand_name}. All rights reserved."


def default_sections() -> list[dict[str, Any]]:
    """Return a fresh copy of the default sections."""

    sections = copy.deepcopy(_DEFAULT_SECTIONS)
    for section in sections:
        if section["type"] == "footer":
            section["data"]["copyright"] = copyright_line(DEFAULT_BRAND_NAME)
    return sections


def default_settings() -> dict[str, Any]:
    return copy.deepcopy(_DEFAULT_SETTINGS)
