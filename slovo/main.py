from typing import Annotated, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status
from pydantic import BaseModel, Field

from slovo.errors import InvalidPageUrl, PageError, StoreError
from slovo.runtime import Runtime, create_runtime
from slovo.services.fetcher import STATUS_ERROR, STATUS_NOT_FOUND


class DefinitionResponse(BaseModel):
    word: str
    status: str
    html: Optional[str] = None
    error: Optional[str] = None
    cached: bool = False


class WordResponse(BaseModel):
    word: str
    offsets: List[int]
    definition: Optional[str]


class ContentRequest(BaseModel):
    html: str = Field(..., description="HTML fragment or document with Russian text.")
    fetch_definitions: bool = Field(
        default=False,
        description="Look up every unique word (slow: requests are rate limited).",
    )


class ContentResponse(BaseModel):
    html: str
    words: List[str]
    failed: List[str] = []


class StatusResponse(BaseModel):
    words: int
    backend: str
    read_only: bool


_STATUS_CODES: Dict[str, int] = {
    STATUS_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    STATUS_ERROR: status.HTTP_502_BAD_GATEWAY,
}


def get_runtime(request: Request) -> Runtime:
    runtime = request.app.state.runtime
    if runtime is None:
        raise HTTPException(status_code=503, detail="Service is starting")
    return runtime


RuntimeDep = Annotated[Runtime, Depends(get_runtime)]


def create_app(runtime: Optional[Runtime] = None) -> FastAPI:
    app = FastAPI(
        title="Slovo API",
        description="Definitions for Russian words of a reading text",
        version="0.1.0",
    )
    app.state.runtime = runtime
    app.state.owns_runtime = runtime is None

    @app.on_event("startup")
    def on_startup() -> None:
        if app.state.runtime is None:
            app.state.runtime = create_runtime().initialize()

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        if app.state.owns_runtime and app.state.runtime is not None:
            app.state.runtime.close()
            app.state.runtime = None

    @app.get("/status", response_model=StatusResponse)
    def status_info(runtime: RuntimeDep) -> StatusResponse:
        return StatusResponse(
            words=runtime.cache.count(),
            backend=runtime.cache.store.name,
            read_only=runtime.cache.read_only,
        )

    @app.get("/api/definition/{word}", response_model=DefinitionResponse)
    def definition(word: str, response: Response, runtime: RuntimeDep) -> DefinitionResponse:
        try:
            result = runtime.fetcher.fetch_definition(word)
        except StoreError as exc:
            response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            return DefinitionResponse(word=word, status=STATUS_ERROR, error=str(exc))
        response.status_code = _STATUS_CODES.get(result.status, status.HTTP_200_OK)
        return DefinitionResponse(**result.to_dict())

    @app.get("/api/words/{word}", response_model=WordResponse)
    def word_record(word: str, runtime: RuntimeDep) -> WordResponse:
        record = runtime.cache.get(word)
        if record is None:
            raise HTTPException(status_code=404, detail="Слово не найдено")
        return WordResponse(word=record.word, offsets=record.offsets, definition=record.definition)

    @app.post("/api/content", response_model=ContentResponse)
    def process_content(payload: ContentRequest, runtime: RuntimeDep) -> ContentResponse:
        processed = runtime.pipeline.process(payload.html, payload.fetch_definitions)
        return ContentResponse(html=processed.html, words=processed.words, failed=processed.failed)

    @app.get("/api/page", response_model=ContentResponse)
    def process_page(
        url: Annotated[str, Query(min_length=1)],
        runtime: RuntimeDep,
        fetch_definitions: bool = False,
    ) -> ContentResponse:
        try:
            page = runtime.pages.load(url)
        except InvalidPageUrl as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except PageError as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
        processed = runtime.pipeline.process(page, fetch_definitions)
        return ContentResponse(html=processed.html, words=processed.words, failed=processed.failed)

    return app


app = create_app()
