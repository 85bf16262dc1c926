"""
Test suite for Energy Graph RAG.

Organized by module:
- test_vector_math.py - Dot product, norm and cosine similarity
- test_graph_store.py - Entity merge, relationships, neighbors, snapshots
- test_metrics.py - Degree centrality and risk scores
- test_vector_store.py - Embedding index and top-k ranking
- test_ingestion.py - Record validation and the ingestion pipeline
- test_rag.py - Retrieval-augmented answers and node summaries
- test_timeline.py - Timeline building
- test_graph_visualizer.py - Graph payload and PyVis rendering
- test_llm_factory.py - Provider client over llama-index models
- test_workspace.py - Workspace facade
- test_logger.py - Bound log context
- test_api.py - FastAPI endpoint tests
"""

# Test fixtures are provided in conftest.py
