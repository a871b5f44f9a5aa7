"""Design system and asset contracts.

Field aliases match the JSON keys models are prompted with (camelCase, "2xl"),
so `model_dump(by_alias=True)` is what lands in brain/design.json.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class ColorPalette(BaseModel):
    """The nine named color roles, each a hex string."""
    primary: str
    secondary: str
    background: str
    surface: str
    text: str
    accent: str
    success: str
    warning: str
    error: str


class FontSizes(BaseModel):
    xs: str
    sm: str
    base: str
    lg: str
    xl: str
    xxl: str = Field(..., alias="2xl")

    model_config = {"populate_by_name": True}


class Typography(BaseModel):
    font_family: str = Field(..., alias="fontFamily")
    font_size: FontSizes = Field(..., alias="fontSize")

    model_config = {"populate_by_name": True}


class Spacing(BaseModel):
    xs: str
    sm: str
    md: str
    lg: str
    xl: str


class BorderRadius(BaseModel):
    sm: str
    md: str
    lg: str
    xl: str


class DesignSystem(BaseModel):
    """A fully populated design system."""
    theme: str = Field(...)
    colors: ColorPalette = Field(...)
    typography: Typography = Field(...)
    spacing: Spacing = Field(...)
    border_radius: BorderRadius = Field(..., alias="borderRadius")
    assets: List[str] = Field(default_factory=list, description="Asset file names")

    model_config = {"populate_by_name": True}

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class ImagePrompt(BaseModel):
    """A prompt for one generated asset."""
    description: str = Field(...)
    style: str = Field(...)
    dimensions: str = Field(..., description="WIDTHxHEIGHT, e.g. 1920x1080")
    use_case: str = Field(..., alias="useCase")

    model_config = {"populate_by_name": True}

    def size(self) -> tuple:
        """Parse dimensions into (width, height); falls back to 512x512."""
        try:
            width, height = (int(part) for part in self.dimensions.lower().split("x", 1))
            return width, height
        except ValueError:
            return 512, 512


class GeneratedImage(BaseModel):
    """An image produced by the image collaborator (data URL)."""
    url: str = Field(..., description="data: URL of the image")
    prompt: str = Field(...)
    use_case: str = Field(...)
    dimensions: str = Field(...)
    placeholder: bool = Field(default=False)


class SavedAsset(BaseModel):
    """An image persisted to project asset storage."""
    url: str = Field(..., description="Location of the stored file")
    use_case: str = Field(...)
    file_name: str = Field(...)
    placeholder: Optional[bool] = Field(None)
