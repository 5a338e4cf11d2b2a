from pydantic import BaseModel


class DocumentUploadResponse(BaseModel):
    message: str = "File uploaded successfully"
    path: str
    filename: str
    content_type: str
    size_bytes: int
    checksum: str


class FileUrlResponse(BaseModel):
    url: str
    expires_in: int
