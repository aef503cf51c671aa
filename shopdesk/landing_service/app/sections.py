"""Per-type validation of landing sections.

Each section type maps to a pydantic model in ``SECTION_VALIDATORS``. Only
the shape of the ``data`` payload is checked here; links that need a
database lookup are resolved by the service afterwards. Validated data keeps
every key the client sent, including ones the models do not declare.
"""

from __future__ import annotations

import uuid
from typing import Any, Literal, Optional
from urllib.parse import urlsplit

import nh3
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError

from shopdesk.common import InvalidInputError

from .metrics import LANDING_SECTION_VALIDATION_FAILURES_TOTAL

Layout = Literal["grid", "list", "carousel"]
Alignment = Literal["left", "center", "right"]


class SectionData(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class CtaButton(SectionData):
    text: StrictStr = Field(min_length=1)
    link: StrictStr = Field(min_length=1)
    link_type: StrictStr = Field(alias="linkType")


class HeroSection(SectionData):
    headline: StrictStr = Field(min_length=1)
    subheadline: StrictStr = Field(min_length=1)
    primary_cta: CtaButton = Field(alias="primaryCta")
    secondary_cta: Optional[CtaButton] = Field(default=None, alias="secondaryCta")
    background_type: Literal["solid", "gradient", "image", "video"] = Field(alias="backgroundType")
    background_image: Optional[StrictStr] = Field(default=None, alias="backgroundImage")
    background_video: Optional[StrictStr] = Field(default=None, alias="backgroundVideo")
    background_color: Optional[StrictStr] = Field(default=None, alias="backgroundColor")
    gradient_start: Optional[StrictStr] = Field(default=None, alias="gradientStart")
    gradient_end: Optional[StrictStr] = Field(default=None, alias="gradientEnd")
    gradient_angle: Optional[StrictStr] = Field(default=None, alias="gradientAngle")
    text_alignment: Alignment = Field(alias="textAlignment")
    height: Literal["small", "medium", "large", "full"]
    features: Optional[list[StrictStr]] = None
    trust_badges: Optional[list[StrictStr]] = Field(default=None, alias="trustBadges")
    show_trust_badges: Optional[StrictBool] = Field(default=None, alias="showTrustBadges")


class FeatureCard(SectionData):
    id: Optional[StrictStr] = None
    icon: Optional[StrictStr] = None
    title: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    order: Optional[StrictInt] = None


class FeaturesSection(SectionData):
    title: Optional[StrictStr] = None
    subtitle: Optional[StrictStr] = None
    heading: Optional[StrictStr] = None
    subheading: Optional[StrictStr] = None
    layout: Optional[Layout] = None
    columns: Optional[Literal[2, 3, 4]] = None
    features: Optional[list[FeatureCard]] = None


class FooterLink(SectionData):
    label: StrictStr = Field(min_length=1)
    url: StrictStr
    link_type: Optional[StrictStr] = Field(default=None, alias="linkType")
    order: Optional[StrictInt] = None


class SocialLink(SectionData):
    platform: StrictStr = Field(min_length=1)
    url: StrictStr
    icon: Optional[StrictStr] = None


class FooterSection(SectionData):
    company_name: Optional[StrictStr] = Field(default=None, alias="companyName")
    description: Optional[StrictStr] = None
    logo: Optional[StrictStr] = None
    nav_links: Optional[list[FooterLink]] = Field(default=None, alias="navLinks")
    social_links: Optional[list[SocialLink]] = Field(default=None, alias="socialLinks")
    copyright: Optional[StrictStr] = None
    show_newsletter: Optional[StrictBool] = Field(default=None, alias="showNewsletter")
    newsletter_title: Optional[StrictStr] = Field(default=None, alias="newsletterTitle")
    newsletter_description: Optional[StrictStr] = Field(default=None, alias="newsletterDescription")


class CtaSection(SectionData):
    title: StrictStr = Field(min_length=1)
    description: Optional[StrictStr] = None
    primary_cta: CtaButton = Field(alias="primaryCta")
    secondary_cta: Optional[CtaButton] = Field(default=None, alias="secondaryCta")
    background_color: Optional[StrictStr] = Field(default=None, alias="backgroundColor")
    text_color: Optional[StrictStr] = Field(default=None, alias="textColor")
    alignment: Optional[Alignment] = None


class Testimonial(SectionData):
    id: Optional[StrictStr] = None
    quote: StrictStr = Field(min_length=1)
    author: StrictStr = Field(min_length=1)
    role: Optional[StrictStr] = None
    company: Optional[StrictStr] = None
    avatar: Optional[StrictStr] = None
    rating: Optional[StrictInt] = Field(default=None, ge=1, le=5)
    order: Optional[StrictInt] = None


class TestimonialsSection(SectionData):
    title: Optional[StrictStr] = None
    subtitle: Optional[StrictStr] = None
    heading: Optional[StrictStr] = None
    subheading: Optional[StrictStr] = None
    layout: Optional[Literal["grid", "carousel", "masonry"]] = None
    columns: Optional[StrictInt] = Field(default=None, ge=1, le=4)
    show_ratings: Optional[StrictBool] = Field(default=None, alias="showRatings")
    testimonials: Optional[list[Testimonial]] = None


class Stat(SectionData):
    id: Optional[StrictStr] = None
    label: StrictStr = Field(min_length=1)
    value: StrictStr
    prefix: Optional[StrictStr] = None
    suffix: Optional[StrictStr] = None
    icon: Optional[StrictStr] = None
    order: Optional[StrictInt] = None


class StatsSection(SectionData):
    title: Optional[StrictStr] = None
    subtitle: Optional[StrictStr] = None
    layout: Optional[Literal["grid", "horizontal"]] = None
    stats: list[Stat] = Field(default_factory=list)


class ContentSection(SectionData):
    title: Optional[StrictStr] = None
    content: StrictStr
    layout: Optional[Literal["single", "two-column"]] = None
    image: Optional[StrictStr] = None
    image_position: Optional[Literal["left", "right"]] = Field(default=None, alias="imagePosition")


class BlogPostsSection(SectionData):
    title: Optional[StrictStr] = None
    subtitle: Optional[StrictStr] = None
    layout: Optional[Layout] = None
    columns: Optional[Literal[2, 3, 4]] = None
    post_count: Optional[StrictInt] = Field(default=None, ge=1, le=24, alias="postCount")
    filter_by_category: Optional[StrictStr] = Field(default=None, alias="filterByCategory")
    filter_by_tag: Optional[StrictStr] = Field(default=None, alias="filterByTag")
    show_excerpt: Optional[StrictBool] = Field(default=None, alias="showExcerpt")
    show_author: Optional[StrictBool] = Field(default=None, alias="showAuthor")
    show_date: Optional[StrictBool] = Field(default=None, alias="showDate")
    cta_text: Optional[StrictStr] = Field(default=None, alias="ctaText")


class PagesSection(SectionData):
    title: Optional[StrictStr] = None
    subtitle: Optional[StrictStr] = None
    layout: Optional[Layout] = None
    columns: Optional[Literal[2, 3, 4]] = None
    page_count: Optional[StrictInt] = Field(default=None, ge=1, le=24, alias="pageCount")
    parent_page_id: Optional[StrictStr] = Field(default=None, alias="parentPageId")
    show_excerpt: Optional[StrictBool] = Field(default=None, alias="showExcerpt")
    show_image: Optional[StrictBool] = Field(default=None, alias="showImage")
    cta_text: Optional[StrictStr] = Field(default=None, alias="ctaText")


class ProductsSection(SectionData):
    title: Optional[StrictStr] = None
    subtitle: Optional[StrictStr] = None
    layout: Optional[Layout] = None
    columns: Optional[Literal[2, 3, 4]] = None
    product_count: Optional[Literal[3, 6, 9, 12]] = Field(default=None, alias="productCount")
    filter_by_category: Optional[StrictStr] = Field(default=None, alias="filterByCategory")
    filter_by_tag: Optional[StrictStr] = Field(default=None, alias="filterByTag")
    show_price: Optional[StrictBool] = Field(default=None, alias="showPrice")
    show_rating: Optional[StrictBool] = Field(default=None, alias="showRating")
    show_stock: Optional[StrictBool] = Field(default=None, alias="showStock")
    cta_text: Optional[StrictStr] = Field(default=None, alias="ctaText")


SECTION_VALIDATORS: dict[str, type[SectionData]] = {
    "hero": HeroSection,
    "features": FeaturesSection,
    "footer": FooterSection,
    "cta": CtaSection,
    "testimonials": TestimonialsSection,
    "stats": StatsSection,
    "content": ContentSection,
    "blog-posts": BlogPostsSection,
    "pages": PagesSection,
    "products": ProductsSection,
}

# Section type -> (list key, id prefix) for entries that get ids and ordering.
_ORDERED_ENTRIES = {
    "features": ("features", "feature"),
    "testimonials": ("testimonials", "testimonial"),
    "stats": ("stats", "stat"),
}


def _format_errors(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return messages


def validate_section_data(section_type: str, data: dict[str, Any]) -> dict[str, Any]:
    """Validate ``data`` for ``section_type`` and return the normalised payload."""

    model = SECTION_VALIDATORS.get(section_type)
    if model is None:
        LANDING_SECTION_VALIDATION_FAILURES_TOTAL.labels(section_type="unknown").inc()
        raise InvalidInputError(f"Unknown section type: {section_type}")

    try:
        validated = model.model_validate(data)
    except ValidationError as exc:
        LANDING_SECTION_VALIDATION_FAILURES_TOTAL.labels(section_type=section_type).inc()
        messages = _format_errors(exc)
        raise InvalidInputError(
            f"Validation failed for {section_type} section: {'; '.join(messages)}",
            errors=messages,
        ) from exc

    normalised = validated.model_dump(by_alias=True, exclude_unset=True)
    if section_type == "content":
        normalised["content"] = nh3.clean(normalised["content"])
    entries = _ORDERED_ENTRIES.get(section_type)
    if entries is not None and normalised.get(entries[0]):
        key, prefix = entries
        normalised[key] = [_with_identity(entry, index, prefix) for index, entry in enumerate(normalised[key])]
    return normalised


def _with_identity(entry: dict[str, Any], index: int, prefix: str) -> dict[str, Any]:
    entry = dict(entry)
    if not entry.get("id"):
        entry["id"] = f"{prefix}-{uuid.uuid4().hex[:12]}"
    if entry.get("order") is None:
        entry["order"] = index
    return entry


def cta_buttons(data: dict[str, Any]) -> list[dict[str, Any]]:
    """Return the CTA buttons present in validated section data."""

    return [data[key] for key in ("primaryCta", "secondaryCta") if isinstance(data.get(key), dict)]


def is_valid_url_link(link: str) -> bool:
    """Accept absolute URLs, site-relative paths and in-page anchors."""

    if link.startswith(("/", "#")):
        return True
    parts = urlsplit(link)
    return bool(parts.scheme) and bool(parts.netloc or parts.path)
