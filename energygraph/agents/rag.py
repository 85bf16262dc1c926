"""
RAG Orchestrator - retrieval-augmented answers over the graph.

Question -> embedding -> top-k entities -> context block -> generation.
Node summaries use the entity and its immediate neighbors as context
instead of a similarity search.

Provider failures stop at this boundary: callers get a fallback message
and ``failed=True``, never a half-built answer.
"""

from collections.abc import Sequence

from energygraph.agents.schemas import ContextItem, NodeSummary, RAGAnswer
from energygraph.knowledge.graph_store import GraphStore
from energygraph.knowledge.schemas import Entity
from energygraph.knowledge.vector_store import EmbeddingIndex
from energygraph.utils.llm_factory import EmbedFn, GenerateFn, ProviderError
from energygraph.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TOP_K = 8

RAG_FAILURE_MESSAGE = "Failed to run RAG over the graph."
SUMMARY_FAILURE_MESSAGE = "Failed to generate node summary."


# ============================================================================
# Prompts
# ============================================================================

ANSWER_PROMPT = """User question:
{question}

Relevant graph context (nodes and events):
{context}

Using only this context and your own energy-domain knowledge, do the following: \
1. Give a concise answer (3-6 sentences). \
2. Describe which nodes are high-risk and why, focusing on outages, cascading risks, and policy gaps. \
3. Describe the rough timeline of key events in simple language. \
Keep the answer in plain text paragraphs, no bullet points, no markdown."""

SUMMARY_PROMPT = """Summarize this energy knowledge graph node for an analyst.

Node id: {id}
Type: {kind}
Title: {title}
Summary: {summary}
Region/jurisdiction: {region}
Severity (if event): {severity}

Neighbouring nodes:
{neighbours}

Explain in plain text: 1) what this node represents, 2) why it might be important or high-risk, \
3) how it connects to surrounding events or policies. Keep it short, 2-3 paragraphs, no markdown."""


def build_context_block(contexts: Sequence[ContextItem]) -> str:
    return "\n".join(item.to_context_line() for item in contexts)


def build_answer_prompt(question: str, contexts: Sequence[ContextItem]) -> str:
    return ANSWER_PROMPT.format(question=question, context=build_context_block(contexts))


def build_summary_prompt(entity: Entity, neighbours: Sequence[Entity]) -> str:
    neighbour_block = "\n".join(
        f"id={n.id}, type={n.kind.value}, title={n.display_title}, summary={n.summary or ''}"
        for n in neighbours
    )
    return SUMMARY_PROMPT.format(
        id=entity.id,
        kind=entity.kind.value,
        title=entity.display_title,
        summary=entity.summary or "",
        region=entity.area or "",
        severity="" if entity.severity is None else entity.severity,
        neighbours=neighbour_block,
    )


# ============================================================================
# Orchestrator
# ============================================================================

class RAGOrchestrator:
    """
    Answer questions and summarize nodes from graph context.

    Read-only with respect to the graph store and embedding index.

    Usage:
        rag = RAGOrchestrator(store, index, embed=client.embed, generate=client.generate)
        result = await rag.answer("Which regions risk cascading outages?")
        summary = await rag.summarize("event:storm_2021")
    """

    def __init__(
        self,
        graph_store: GraphStore,
        embedding_index: EmbeddingIndex,
        embed: EmbedFn,
        generate: GenerateFn,
        default_top_k: int = DEFAULT_TOP_K,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            graph_store: Source of entity records
            embedding_index: Source of similarity rankings
            embed: Async embedding capability
            generate: Async text-generation capability
            default_top_k: Matches retrieved when ``answer`` gets no ``k``
        """
        self.graph_store = graph_store
        self.embedding_index = embedding_index
        self.embed = embed
        self.generate = generate
        self.default_top_k = default_top_k

    async def retrieve(self, question: str, k: int | None = None) -> list[ContextItem]:
        """
        Top-k entities for ``question``, best first.

        Matches whose entity no longer exists are dropped.

        Raises:
            ProviderError: If the question cannot be embedded
        """
        limit = self.default_top_k if k is None else k
        if limit <= 0 or len(self.embedding_index) == 0:
            return []

        query = await self.embed(question)
        hits = self.embedding_index.top_k(query, limit)

        contexts: list[ContextItem] = []
        for hit in hits:
            entity = self.graph_store.get_entity(hit.entity_id)
            if entity is None:
                logger.warning(f"Index entry {hit.entity_id} has no entity, skipping")
                continue
            contexts.append(ContextItem.from_entity(entity, similarity=hit.score))

        logger.debug(f"Retrieved {len(contexts)} contexts for question")
        return contexts

    async def answer(self, question: str, k: int | None = None) -> RAGAnswer:
        """
        Answer ``question`` from the most similar graph nodes.

        An empty index, a blank question or a non-positive ``k`` returns an
        empty answer without calling either provider.
        """
        limit = self.default_top_k if k is None else k
        if not question.strip() or limit <= 0 or len(self.embedding_index) == 0:
            return RAGAnswer(question=question)

        try:
            contexts = await self.retrieve(question, limit)
            text = await self.generate(build_answer_prompt(question, contexts))
        except ProviderError as e:
            logger.error(f"RAG failed: {e}")
            return RAGAnswer(question=question, answer=RAG_FAILURE_MESSAGE, failed=True)

        return RAGAnswer(question=question, answer=text, contexts=contexts)

    async def summarize(self, entity_id: str) -> NodeSummary:
        """
        Summarize one entity using its immediate neighbors as context.

        Raises:
            NotFoundError: If ``entity_id`` is not in the graph
        """
        entity = self.graph_store.require_entity(entity_id)
        neighbours = self.graph_store.neighbors(entity_id)

        contexts = [ContextItem.from_entity(entity)]
        contexts.extend(ContextItem.from_entity(n) for n in neighbours)

        try:
            text = await self.generate(build_summary_prompt(entity, neighbours))
        except ProviderError as e:
            logger.error(f"Node summary failed for {entity_id}: {e}")
            return NodeSummary(entity_id=entity_id, answer=SUMMARY_FAILURE_MESSAGE, failed=True)

        return NodeSummary(entity_id=entity_id, answer=text, contexts=contexts)
