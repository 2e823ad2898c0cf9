from pydantic import BaseModel, Field
from sqlalchemy import Select


class PageInfo(BaseModel):
    page: int
    page_size: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool


class PaginationParams(BaseModel):
    """Page window over a newest-first listing."""

    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    page_size: int = Field(default=20, ge=1, le=100, description="Number of items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

    def apply(self, statement: Select) -> Select:
        """Restrict an already ordered select to this page."""
        return statement.offset(self.offset).limit(self.limit)

    def page_info(self, total_count: int) -> PageInfo:
        total_pages = -(-total_count // self.page_size)
        return PageInfo(
            page=self.page,
            page_size=self.page_size,
            total_pages=total_pages,
            total_count=total_count,
            has_next=self.page < total_pages,
            has_prev=self.page > 1
        )
