"""Knowledge base endpoints: list, add, upload, delete and process items.

New documents, audio, images and web pages are stored as ``pending`` and
normalized by a background task after the response is sent. Text notes
are searchable immediately.
"""

import logging

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    Form,
    HTTPException,
    Response,
    UploadFile,
    status,
)

from second_brain.api.dependencies import (
    get_content_processor,
    get_file_storage,
    get_knowledge_store,
)
from second_brain.errors import ContentProcessingError
from second_brain.knowledge.config import KnowledgeConfig, get_knowledge_config
from second_brain.knowledge.files import FileStorage
from second_brain.knowledge.ingestion import ContentProcessor
from second_brain.knowledge.store import KnowledgeStore
from second_brain.models.schemas import (
    ItemStatus,
    KnowledgeItem,
    Modality,
    ProcessContentRequest,
    ProcessContentResponse,
    TextNoteRequest,
    UrlRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/knowledge", tags=["knowledge"])

ALLOWED_EXTENSIONS: dict[Modality, tuple[str, ...]] = {
    Modality.DOCUMENT: (".pdf", ".md", ".txt"),
    Modality.AUDIO: (".mp3", ".m4a", ".wav"),
    Modality.IMAGE: (".jpg", ".jpeg", ".png", ".webp"),
}


def _validate_file_extension(filename: str | None, modality: Modality) -> str:
    """Validate that the file extension is accepted for the modality.

    Args:
        filename: The uploaded filename.
        modality: Requested content type.

    Returns:
        The validated filename.

    Raises:
        HTTPException: 400 if the filename is missing or the extension is invalid.
    """
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )

    allowed = ALLOWED_EXTENSIONS.get(modality)
    if allowed is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File uploads are not accepted for {modality.value} items",
        )

    if not filename.lower().endswith(allowed):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only {', '.join(allowed)} files are accepted for {modality.value} items",
        )

    return filename


async def _read_and_validate_size(file: UploadFile, max_bytes: int) -> bytes:
    """Read file content and validate size.

    Raises:
        HTTPException: 400 if the file is empty, 413 if it exceeds the limit.
    """
    content = await file.read()

    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Empty file provided",
        )

    if len(content) > max_bytes:
        size_mb = len(content) / (1024 * 1024)
        limit_mb = max_bytes / (1024 * 1024)
        raise HTTPException(
            status_code=413,
            detail=f"File size ({size_mb:.1f}MB) exceeds maximum allowed ({limit_mb:.0f}MB)",
        )

    return content


@router.get("", response_model=list[KnowledgeItem])
def list_items(store: KnowledgeStore = Depends(get_knowledge_store)) -> list[KnowledgeItem]:
    """List all knowledge items, newest first."""
    return store.list_items()


@router.post("/text", response_model=KnowledgeItem, status_code=status.HTTP_201_CREATED)
def add_text(
    note: TextNoteRequest,
    store: KnowledgeStore = Depends(get_knowledge_store),
) -> KnowledgeItem:
    """Save a text note. Notes need no processing and are searchable at once."""
    return store.create_item(
        title=note.title,
        modality=Modality.TEXT,
        original_content=note.text,
        processed_content=note.text,
        status=ItemStatus.COMPLETED,
    )


@router.post("/url", response_model=KnowledgeItem, status_code=status.HTTP_201_CREATED)
def add_url(
    request: UrlRequest,
    background_tasks: BackgroundTasks,
    store: KnowledgeStore = Depends(get_knowledge_store),
    processor: ContentProcessor = Depends(get_content_processor),
) -> KnowledgeItem:
    """Register a web page and fetch it in the background."""
    item = store.create_item(
        title=request.url,
        modality=Modality.WEB,
        original_content=request.url,
        metadata={"url": request.url},
    )
    background_tasks.add_task(processor.process_in_background, item.id)
    return item


@router.post("/upload", response_model=KnowledgeItem, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile,
    background_tasks: BackgroundTasks,
    modality: Modality = Form(...),
    store: KnowledgeStore = Depends(get_knowledge_store),
    files: FileStorage = Depends(get_file_storage),
    processor: ContentProcessor = Depends(get_content_processor),
    config: KnowledgeConfig = Depends(get_knowledge_config),
) -> KnowledgeItem:
    """Upload a document, audio file or image.

    Args:
        file: The uploaded file (multipart/form-data).
        modality: One of document, audio or image.

    Returns:
        The pending knowledge item.

    Raises:
        400: Missing filename, wrong extension or empty file.
        413: File exceeds the size limit.
    """
    filename = _validate_file_extension(file.filename, modality)
    content = await _read_and_validate_size(file, config.max_upload_bytes)

    key = files.save(filename, content)
    item = store.create_item(
        title=filename,
        modality=modality,
        original_content=key,
        metadata={
            "fileName": filename,
            "size": len(content),
            "type": file.content_type,
        },
    )
    background_tasks.add_task(processor.process_in_background, item.id)
    logger.info(f"Uploaded {filename} as {modality.value} item {item.id}")
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: str,
    store: KnowledgeStore = Depends(get_knowledge_store),
    files: FileStorage = Depends(get_file_storage),
) -> Response:
    """Delete an item and its stored file, if any."""
    item = store.get_item(item_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Knowledge item not found",
        )

    store.delete_item(item_id)
    if item.modality in ALLOWED_EXTENSIONS and files.exists(item.original_content):
        files.delete(item.original_content)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/process", response_model=ProcessContentResponse)
async def process_content(
    request: ProcessContentRequest,
    processor: ContentProcessor = Depends(get_content_processor),
) -> ProcessContentResponse:
    """Normalize an existing item into searchable text."""
    try:
        return await processor.handle_request(request)
    except ContentProcessingError as e:
        logger.error(f"Process content error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e
