from pydantic import BaseModel


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool

    @classmethod
    def build(cls, total: int, limit: int, offset: int) -> "Pagination":
        return cls(
            total=total, limit=limit, offset=offset, has_more=offset + limit < total
        )


class MessageResponse(BaseModel):
    message: str
