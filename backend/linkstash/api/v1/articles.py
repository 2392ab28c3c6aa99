"""Articles API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from linkstash.api.deps import get_article_service
from linkstash.errors import (
    ArticleNotFoundError,
    DuplicateArticleError,
    InvalidUrlError,
    NetworkError,
)
from linkstash.extraction.platforms import Platform
from linkstash.schemas.article import (
    ArticleCreate,
    ArticleListResponse,
    ArticleResponse,
    ArticleTagsAdd,
    ArticleUpdate,
    TagStat,
    TagStatsResponse,
)
from linkstash.services.article_service import ArticleService

router = APIRouter()


def _not_found(e: ArticleNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.user_message)


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def save_article(
    payload: ArticleCreate,
    service: ArticleService = Depends(get_article_service),
) -> ArticleResponse:
    """
    Save a link to the library.

    Extraction runs before the response; AI enrichment continues in the
    background and shows up on later reads.
    """
    try:
        article = await service.save_link(payload.url)
    except InvalidUrlError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.user_message)
    except DuplicateArticleError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": e.user_message, "existing_id": e.existing_id},
        )
    except NetworkError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.user_message)

    return ArticleResponse.model_validate(article)


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    platform: Platform | None = None,
    tag: str | None = None,
    unread: bool | None = None,
    favorite: bool | None = None,
    bookmarked: bool | None = None,
    q: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: ArticleService = Depends(get_article_service),
) -> ArticleListResponse:
    """
    List saved articles, newest first.

    - platform: Filter by source platform
    - tag: Filter by tag
    - unread / favorite / bookmarked: Filter by user state
    - q: Case-insensitive search in title and content
    """
    articles = await service.list_articles(
        platform=platform,
        tag=tag,
        is_unread=unread,
        is_favorite=favorite,
        is_bookmarked=bookmarked,
        query=q,
        limit=limit,
        offset=offset,
    )
    return ArticleListResponse(
        articles=[ArticleResponse.model_validate(a) for a in articles],
        total=len(articles),
        limit=limit,
        offset=offset,
    )


@router.get("/tags", response_model=TagStatsResponse)
async def tag_stats(
    service: ArticleService = Depends(get_article_service),
) -> TagStatsResponse:
    """Tags in use with the number of articles carrying each."""
    stats = await service.tag_stats()
    return TagStatsResponse(tags=[TagStat(name=name, count=count) for name, count in stats])


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: str,
    service: ArticleService = Depends(get_article_service),
) -> ArticleResponse:
    """Get a specific article by ID."""
    try:
        article = await service.get(article_id)
    except ArticleNotFoundError as e:
        raise _not_found(e)
    return ArticleResponse.model_validate(article)


@router.patch("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: str,
    payload: ArticleUpdate,
    service: ArticleService = Depends(get_article_service),
) -> ArticleResponse:
    """Mark read/unread, favorite, bookmark, or replace tags."""
    try:
        article = await service.update(article_id, payload)
    except ArticleNotFoundError as e:
        raise _not_found(e)
    return ArticleResponse.model_validate(article)


@router.post("/{article_id}/tags", response_model=ArticleResponse)
async def add_tags(
    article_id: str,
    payload: ArticleTagsAdd,
    service: ArticleService = Depends(get_article_service),
) -> ArticleResponse:
    try:
        article = await service.add_tags(article_id, payload.tags)
    except ArticleNotFoundError as e:
        raise _not_found(e)
    return ArticleResponse.model_validate(article)


@router.post("/{article_id}/ai-tags", response_model=ArticleResponse)
async def adopt_ai_tags(
    article_id: str,
    service: ArticleService = Depends(get_article_service),
) -> ArticleResponse:
    """Copy the AI-suggested topic tags into the article's tags."""
    try:
        article = await service.adopt_ai_tags(article_id)
    except ArticleNotFoundError as e:
        raise _not_found(e)
    return ArticleResponse.model_validate(article)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: str,
    service: ArticleService = Depends(get_article_service),
) -> Response:
    try:
        await service.delete(article_id)
    except ArticleNotFoundError as e:
        raise _not_found(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
