# artisan_market/services/content_service.py
import logging
import re

log = logging.getLogger(__name__)


def fallback_content(name: str | None) -> dict:
    hint = (name or "").strip() or "product"
    tag = re.sub(r"\s+", "", hint)
    return {
        "description": f"Beautiful handcrafted {hint}. Thoughtfully made by skilled artisans.",
        "story": f"Each {hint} reflects cultural heritage and careful craftsmanship, bringing a unique touch to your space.",
        "caption": f"Handmade {hint} you will love. #ArtisanMade #Handcrafted #{tag}",
    }


def generate(name: str, generator=None) -> dict:
    """Product copy from ``generator(name)``, or the template when it is absent or fails."""
    base = fallback_content(name)
    if generator is None:
        return base
    try:
        data = generator(name) or {}
    except Exception as e:  # external model: any failure degrades to the template
        log.warning("content generation failed for %r: %s", name, e)
        return base
    return {k: (data.get(k) or base[k]) for k in base}
