from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case fields in Python, camelCase on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class MessageResponse(CamelModel):
    message: str


class PageMeta(CamelModel):
    total_pages: int
    current_page: int
    total: int
    has_next: bool
    has_prev: bool


def page_fields(page) -> dict:
    return {
        'total_pages': page.total_pages,
        'current_page': page.page,
        'total': page.total,
        'has_next': page.has_next,
        'has_prev': page.has_prev,
    }
