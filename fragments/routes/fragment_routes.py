"""Fragment API routes."""

import os
from urllib.parse import urljoin

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response, status

from common.logging_config import get_logger
from fragments import config
from fragments.auth import get_current_owner
from fragments.exceptions import UnsupportedContentTypeError
from fragments.model.fragment import Fragment
from fragments.schemas.fragments import (
    FragmentEnvelope,
    FragmentResponse,
    ListFragmentsResponse,
    OkResponse
)
from fragments.storage.interfaces import StorageBackends
from fragments.utils import parse_content_type

logger = get_logger(__name__)

router = APIRouter(prefix="/v1/fragments", tags=["Fragments"])


def get_backends(request: Request) -> StorageBackends:
    """
    FastAPI dependency returning the storage backends bound at startup.
    """
    return request.app.state.backends


async def read_fragment_body(request: Request, content_type: str) -> bytes:
    """
    Validate the Content-Type of a write request and read its raw body.

    Raises:
        UnsupportedContentTypeError: If the type is missing, unparseable or
            unsupported, or the body is empty
        HTTPException: 413 if the body is larger than MAX_BODY_BYTES
    """
    try:
        parsed = parse_content_type(content_type)
    except ValueError as e:
        logger.warning(f"Invalid or missing Content-Type: {content_type!r}")
        raise UnsupportedContentTypeError("invalid or missing Content-Type") from e

    if not Fragment.is_supported_type(parsed.type):
        logger.warning(f"Unsupported Content-Type: {parsed.type}")
        raise UnsupportedContentTypeError(f"unsupported type {parsed.type}")

    body = await request.body()

    if len(body) > config.MAX_BODY_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"fragment data exceeds {config.MAX_BODY_BYTES} bytes"
        )

    if not body:
        logger.warning("Missing request body")
        raise UnsupportedContentTypeError("unsupported or missing request body")

    return body


def fragment_envelope(fragment: Fragment) -> FragmentEnvelope:
    return FragmentEnvelope(fragment=FragmentResponse(**fragment.to_dict()))


@router.get("", response_model=ListFragmentsResponse)
async def list_fragments(
    expand: str = Query("0", description="1 to return full metadata instead of ids"),
    owner_id: str = Depends(get_current_owner),
    backends: StorageBackends = Depends(get_backends)
):
    """
    List the current user's fragments.

    Parameters:
        - expand: "1" for full metadata, anything else for ids only

    Returns:
        - fragments: list of ids, or of fragment metadata
    """
    expanded = expand == "1"
    fragments = await Fragment.by_user(backends, owner_id, expanded)

    logger.info(f"Fragments retrieved [owner_id={owner_id}] [count={len(fragments)}] [expand={expanded}]")

    if expanded:
        return ListFragmentsResponse(
            fragments=[FragmentResponse(**fragment.to_dict()) for fragment in fragments]
        )
    return ListFragmentsResponse(fragments=fragments)


@router.post("", response_model=FragmentEnvelope, status_code=status.HTTP_201_CREATED)
async def create_fragment(
    request: Request,
    response: Response,
    content_type: str = Header(""),
    owner_id: str = Depends(get_current_owner),
    backends: StorageBackends = Depends(get_backends)
):
    """
    Create a fragment from the raw request body.

    Parameters:
        - Content-Type header: one of the supported types (parameters allowed)
        - body: raw fragment data

    Returns:
        - fragment: metadata of the new fragment, with a Location header

    Raises:
        - 413: Body too large
        - 415: Missing body, or missing/unsupported Content-Type
    """
    body = await read_fragment_body(request, content_type)

    fragment = Fragment(backends, owner_id=owner_id, type=content_type, size=0)
    await fragment.set_data(body)

    base = config.API_URL
    if not base:
        logger.warning("API_URL not configured, using request host for Location header")
        base = str(request.base_url)
    response.headers["Location"] = urljoin(base, f"/v1/fragments/{fragment.id}")

    logger.info(
        f"Fragment created [id={fragment.id}] [owner_id={owner_id}] [type={fragment.type}] [size={fragment.size}]"
    )
    return fragment_envelope(fragment)


@router.get("/{fragment_id}/info", response_model=FragmentEnvelope)
async def get_fragment_info(
    fragment_id: str,
    owner_id: str = Depends(get_current_owner),
    backends: StorageBackends = Depends(get_backends)
):
    """
    Get a fragment's metadata.

    Raises:
        - 404: Fragment not found
    """
    fragment = await Fragment.by_id(backends, owner_id, fragment_id)
    return fragment_envelope(fragment)


@router.get("/{fragment_id}")
async def get_fragment(
    fragment_id: str,
    owner_id: str = Depends(get_current_owner),
    backends: StorageBackends = Depends(get_backends)
):
    """
    Get a fragment's data, optionally converted.

    Parameters:
        - fragment_id: id, optionally followed by an extension (e.g., "abc.html")

    Returns:
        - raw (or converted) data with its Content-Type

    Raises:
        - 404: Fragment not found
        - 415: Conversion to the requested extension not supported
        - 422: Stored data could not be converted
    """
    stem, extension = os.path.splitext(fragment_id)

    fragment = await Fragment.by_id(backends, owner_id, stem if extension else fragment_id)

    if not extension:
        data = await fragment.get_data()
        logger.info(f"Returning fragment data [id={fragment.id}] [type={fragment.type}]")
        return Response(content=data, media_type=fragment.type)

    result = await fragment.convert_data(extension)
    logger.info(f"Converted fragment data [id={fragment.id}] [from={fragment.type}] [to={result.content_type}]")
    return Response(content=result.data, media_type=result.content_type)


@router.put("/{fragment_id}", response_model=FragmentEnvelope)
async def update_fragment(
    fragment_id: str,
    request: Request,
    content_type: str = Header(""),
    owner_id: str = Depends(get_current_owner),
    backends: StorageBackends = Depends(get_backends)
):
    """
    Replace a fragment's data. The base type cannot change.

    Raises:
        - 400: Content-Type does not match the fragment's type
        - 404: Fragment not found
        - 415: Missing body, or missing/unsupported Content-Type
    """
    fragment = await Fragment.by_id(backends, owner_id, fragment_id)
    body = await read_fragment_body(request, content_type)

    await fragment.replace_data(body, content_type)

    logger.info(f"Fragment updated [id={fragment.id}] [size={fragment.size}]")
    return fragment_envelope(fragment)


@router.delete("/{fragment_id}", response_model=OkResponse)
async def delete_fragment(
    fragment_id: str,
    owner_id: str = Depends(get_current_owner),
    backends: StorageBackends = Depends(get_backends)
):
    """
    Delete a fragment's metadata and data.

    Raises:
        - 404: Fragment not found
    """
    await Fragment.by_id(backends, owner_id, fragment_id)
    await Fragment.delete(backends, owner_id, fragment_id)

    logger.info(f"Fragment deleted [id={fragment_id}] [owner_id={owner_id}]")
    return OkResponse()
