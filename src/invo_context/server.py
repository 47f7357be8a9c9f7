"""
FastAPI server for the context engine.

Exposes retrieval, analytics, and document-sync endpoints for the
conversation layer and for the CRUD screens that mutate business records.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .analytics import AnalyticsUnavailableError
from .config import resolve_db_path
from .engine import ContextEngine
from .models import Product, Sale, SearchMode, Supplier
from .search import SearchResult

app = FastAPI(
    title="InvoContext",
    description="Retrieval and analytics context for the inventory assistant",
)


class SearchRequest(BaseModel):
    """Request model for search queries."""

    query: str
    limit: int = 5
    mode: SearchMode = "hybrid"


class ContextRequest(BaseModel):
    """Request model for prompt context assembly."""

    query: str
    max_results: int = 3


def get_engine(request: Request) -> ContextEngine:
    """Return the engine attached to the app, building one from the default database."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        engine = ContextEngine.from_db_path(resolve_db_path())
        request.app.state.engine = engine
    return engine


def _hit(result: SearchResult) -> dict:
    return {
        "id": result.id,
        "content": result.content,
        "score": result.score,
        "metadata": result.metadata.model_dump(),
    }


@app.post("/api/search")
async def search(request: Request, body: SearchRequest):
    """Rank documents for a query with the requested strategy."""
    try:
        engine = get_engine(request)
        if body.mode == "semantic":
            hits = await engine.semantic_search(body.query, body.limit)
        elif body.mode == "keyword":
            hits = await engine.keyword_search(body.query, body.limit)
        else:
            hits = await engine.hybrid_search(body.query, body.limit)
        return {
            "query": body.query,
            "mode": body.mode,
            "hits": [_hit(hit) for hit in hits],
        }
    except Exception as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)


@app.post("/api/context")
async def relevant_context(request: Request, body: ContextRequest):
    """Return the formatted context block for a query."""
    try:
        engine = get_engine(request)
        text = await engine.get_relevant_context(body.query, body.max_results)
        return {"query": body.query, "context": text}
    except Exception as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)


@app.get("/api/analytics")
async def get_analytics(request: Request, refresh: bool = False):
    """Return cached analytics, or recompute when ``refresh`` is set."""
    try:
        engine = get_engine(request)
        if refresh:
            analytics = await engine.force_refresh()
        else:
            analytics = await engine.get_analytics()
        return analytics.model_dump()
    except AnalyticsUnavailableError as exc:
        return JSONResponse({"error": str(exc)}, status_code=503)
    except Exception as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)


@app.delete("/api/analytics")
async def invalidate_analytics(request: Request):
    try:
        await get_engine(request).invalidate_analytics()
        return {"invalidated": True}
    except Exception as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)


@app.post("/api/index")
async def regenerate_index(request: Request):
    """Rebuild all documents and embeddings from the data store."""
    try:
        engine = get_engine(request)
        count = await engine.regenerate_embeddings()
        return {
            "documents": count,
            "schema_version": engine.store.schema_version,
        }
    except Exception as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)


@app.delete("/api/index")
async def invalidate_index(request: Request):
    try:
        await get_engine(request).invalidate()
        return {"invalidated": True}
    except Exception as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)


@app.put("/api/documents/products")
async def upsert_product(request: Request, product: Product):
    try:
        document = await get_engine(request).update_document(product)
        return {"id": document.id, "content": document.content}
    except Exception as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)


@app.put("/api/documents/suppliers")
async def upsert_supplier(request: Request, supplier: Supplier):
    try:
        document = await get_engine(request).update_document(supplier)
        return {"id": document.id, "content": document.content}
    except Exception as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)


@app.put("/api/documents/sales")
async def update_sales(request: Request, sales: list[Sale]):
    """Re-render the sales summary; an empty list drops it."""
    try:
        document = await get_engine(request).update_sales_summary(sales)
    except Exception as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)
    if document is None:
        return {"id": None, "content": None}
    return {"id": document.id, "content": document.content}


@app.delete("/api/documents/{doc_id}")
async def remove_document(request: Request, doc_id: str):
    try:
        removed = await get_engine(request).remove_document(doc_id)
        return {"id": doc_id, "removed": removed}
    except Exception as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)


def run_server(host: str = "127.0.0.1", port: int = 8000, db_path: str | None = None):
    """Run the FastAPI server."""
    import uvicorn

    app.state.engine = ContextEngine.from_db_path(resolve_db_path(db_path))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
