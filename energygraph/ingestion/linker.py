"""
Relationship Inference - derived paper/event links.

A link rule looks at one paper and one event and returns a relation label,
or None when the pair is unrelated. Rules are plain callables so a stronger
classifier can replace the keyword heuristic without touching the pipeline.
"""

from collections.abc import Callable
from dataclasses import dataclass

from energygraph.knowledge.schemas import Entity, RelationKind

LinkRule = Callable[[Entity, Entity], str | None]


@dataclass(frozen=True)
class KeywordLinkRule:
    """
    Case-insensitive substring co-occurrence.

    Links a paper whose title contains ``title_marker`` to an event whose
    description contains ``description_marker``.
    """

    title_marker: str = "blackout"
    description_marker: str = "outage"
    relation: str = RelationKind.MENTIONS_EVENT.value

    def __call__(self, paper: Entity, event: Entity) -> str | None:
        title = (paper.title or "").lower()
        description = (event.summary or "").lower()
        if self.title_marker.lower() in title and self.description_marker.lower() in description:
            return self.relation
        return None


DEFAULT_LINK_RULES: tuple[LinkRule, ...] = (KeywordLinkRule(),)


def infer_links(
    papers: list[Entity],
    events: list[Entity],
    rules: tuple[LinkRule, ...] | list[LinkRule] = DEFAULT_LINK_RULES,
) -> list[tuple[str, str, str]]:
    """
    Apply every rule to every (paper, event) pair.

    Returns:
        ``(paper_id, event_id, relation)`` triples in paper, event, rule order
    """
    links: list[tuple[str, str, str]] = []
    for paper in papers:
        for event in events:
            for rule in rules:
                relation = rule(paper, event)
                if relation:
                    links.append((paper.id, event.id, relation))
    return links
