"""
Knowledge Router — manage the reference documents fed to root-cause analysis.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.deps import get_knowledge_store
from knowledge.store import KnowledgeStore

router = APIRouter(prefix="/api/v1/knowledge", tags=["knowledge"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class KnowledgeFileCreate(BaseModel):
    name: str = Field(min_length=1)
    content: str


class KnowledgeFileInfoResponse(BaseModel):
    name: str
    uploaded_at: str

    model_config = {"from_attributes": True}


class KnowledgeContentResponse(BaseModel):
    content: str


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/files", response_model=list[KnowledgeFileInfoResponse])
async def list_files(store: KnowledgeStore = Depends(get_knowledge_store)):
    return [KnowledgeFileInfoResponse.model_validate(f) for f in store.list_files()]


@router.post("/files", response_model=KnowledgeFileInfoResponse, status_code=201)
async def add_file(body: KnowledgeFileCreate, store: KnowledgeStore = Depends(get_knowledge_store)):
    """Upload a document. An existing document with the same name is replaced."""
    entry = store.add(body.name, body.content)
    return KnowledgeFileInfoResponse.model_validate(entry)


@router.delete("/files/{name}", status_code=204)
async def delete_file(name: str, store: KnowledgeStore = Depends(get_knowledge_store)):
    if not store.delete(name):
        raise HTTPException(status_code=404, detail="Knowledge file not found")


@router.delete("/files", status_code=204)
async def clear_files(store: KnowledgeStore = Depends(get_knowledge_store)):
    store.clear()


@router.get("/content", response_model=KnowledgeContentResponse)
async def get_content(store: KnowledgeStore = Depends(get_knowledge_store)):
    return KnowledgeContentResponse(content=store.content())
