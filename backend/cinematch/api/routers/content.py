from fastapi import APIRouter

from cinematch.content import DEFAULT_SCRIPT, landing_content

router = APIRouter()


@router.get("/content")
def get_content():
    """Landing copy for the header, hero, simulator panel and footer."""
    return landing_content()


@router.get("/script/sample")
def get_sample_script():
    return {"script": DEFAULT_SCRIPT}
