from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


FileCategory = Literal["image", "document"]


class UploadRequest(BaseModel):
    """Body of ``POST /upload``.

    Required fields are validated by the relay itself so that a missing value
    is reported as a 400 ``missing_parameter`` rather than a schema error.
    """
    model_config = ConfigDict(populate_by_name=True)

    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("openAiApiKey", "open_ai_api_key", "api_key"),
    )
    file_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("fileUrl", "file_url"),
    )
    # Overrides the name otherwise parsed out of file_url
    file_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("fileName", "file_name"),
    )


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_id: str = Field(serialization_alias="fileId")
    file_type: FileCategory = Field(serialization_alias="fileType")


class ErrorResponse(BaseModel):
    error: str
    code: str
