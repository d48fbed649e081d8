"""Placeholder expansion of release notes templates.

Templates reference values as ``${{NAME}}``. Every known token is replaced
in one pass by literal substitution. Unknown tokens are left as they are,
so user templates may reference sections that a run does not produce.
"""

import re
from typing import Dict, List, Optional

from ..config import Configuration, Transformer
from ..models import PullRequestInfo
from .classifier import CategorizedItems


PLACEHOLDER_RE = re.compile(r'\$\{\{([A-Za-z0-9_]+)\}\}')

_REGEX_FLAGS = {
    'i': re.IGNORECASE,
    'm': re.MULTILINE,
    's': re.DOTALL,
}


def placeholder(name: str) -> str:
    """Template token for ``name``."""
    return "${{" + name + "}}"


def fill_placeholders(template: str, values: Dict[str, str]) -> str:
    """Replace known tokens, leave unknown ones verbatim.

    Substituted values are not scanned again, so a PR body that contains a
    token is rendered as written.
    """
    def replace(match):
        name = match.group(1)
        if name in values:
            return values[name]
        return match.group(0)

    return PLACEHOLDER_RE.sub(replace, template)


def item_values(item: PullRequestInfo) -> Dict[str, str]:
    """Placeholder values for one pull request or commit."""
    return {
        'NUMBER': str(item.number),
        'TITLE': item.title,
        'URL': item.html_url,
        'MERGED_AT': item.merged_at.isoformat() if item.merged_at else "",
        'AUTHOR': item.author,
        'LABELS': ", ".join(item.labels),
        'BODY': item.body or "",
        'REVIEWERS': ", ".join(item.reviewers),
        'APPROVERS': ", ".join(item.approvers),
    }


def apply_transformers(text: str, transformers: List[Transformer]) -> str:
    """Run the configured regex rewrites over a rendered item."""
    for transformer in transformers:
        flags = 0
        for flag in transformer.flags:
            flags |= _REGEX_FLAGS.get(flag, 0)
        # accept $1 style group references next to \1
        target = re.sub(r'\$(\d+)', r'\\g<\1>', transformer.target)
        text = re.sub(transformer.pattern, target, text, flags=flags)
    return text


def render_items(items: List[PullRequestInfo], template: str, config: Configuration) -> str:
    """Render ``template`` once per item, joined by the configured separator."""
    lines = [
        apply_transformers(fill_placeholders(template, item_values(item)), config.transformers)
        for item in items
    ]
    return config.separator.join(lines)


def render_changelog(categorized: CategorizedItems, config: Configuration) -> str:
    """Render all non-empty categories in declaration order."""
    sections = []
    seen = set()
    for category in config.categories:
        if category.title in seen:
            continue
        seen.add(category.title)

        header = fill_placeholders(config.category_template, {'CATEGORY': category.title})
        items = categorized.categories.get(category.title, [])
        if items:
            sections.append(f"{header}\n\n{render_items(items, config.pr_template, config)}")
        elif category.empty_content is not None:
            sections.append(f"{header}\n\n{category.empty_content}")

    return "\n\n".join(sections)


def template_values(categorized: CategorizedItems, stats: Dict[str, str],
                    config: Configuration) -> Dict[str, str]:
    """Values of the top-level placeholders: run stats, sections and counts."""
    open_template = config.open_template or config.pr_template
    uncategorized = render_items(categorized.uncategorized, config.pr_template, config)
    values = dict(stats)
    values.update({
        'CHANGELOG': render_changelog(categorized, config),
        'UNCATEGORIZED': uncategorized,
        'OPEN': render_items(categorized.open, open_template, config),
        'IGNORED': render_items(categorized.ignored, config.pr_template, config),
        'CATEGORIZED_COUNT': str(categorized.categorized_count),
        'UNCATEGORIZED_COUNT': str(len(categorized.uncategorized)),
        'OPEN_COUNT': str(len(categorized.open)),
        'IGNORED_COUNT': str(len(categorized.ignored)),
        'TOTAL_COUNT': str(total_count(categorized)),
    })
    # wrapper around the uncategorized list, dropped entirely when it is empty
    values['UNCATEGORIZED_SECTION'] = (
        fill_placeholders(config.uncategorized_template, values) if uncategorized else ""
    )
    return values


def render(template: str, categorized: CategorizedItems, stats: Dict[str, str],
           config: Configuration) -> str:
    """Expand the top-level template.

    Args:
        template: Template with ``${{NAME}}`` placeholders
        categorized: Classified items
        stats: Run values such as tags, dates and owner/repo
        config: Release notes configuration

    Returns:
        Rendered release notes
    """
    return fill_placeholders(template, template_values(categorized, stats, config))


def total_count(categorized: CategorizedItems) -> int:
    return categorized.categorized_count + len(categorized.uncategorized) + len(categorized.open)


def render_release_notes(categorized: CategorizedItems, stats: Dict[str, str],
                         config: Configuration, template: Optional[str] = None) -> str:
    """Render the release notes, or the empty template when nothing changed."""
    if total_count(categorized) == 0:
        return fill_placeholders(config.empty_template, template_values(categorized, stats, config))
    return render(template or config.template, categorized, stats, config)
