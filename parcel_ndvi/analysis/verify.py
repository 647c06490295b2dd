from PIL import Image
from pydantic import BaseModel, Field, field_validator
from rich import print

from parcel_ndvi.analysis.prompts import INSTRUCTIONS, build_user_message
from parcel_ndvi.config import settings
from parcel_ndvi.utils import encode_image_pil


class LandReport(BaseModel):
    suitability_score: int
    land_use: str
    crop_recommendations: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    soil_type_estimation: str
    summary: str

    @field_validator("suitability_score")
    @classmethod
    def _clamp_score(cls, v: int) -> int:
        return max(0, min(100, v))


def fallback_report() -> LandReport:
    return LandReport(
        suitability_score=0,
        land_use="Error",
        crop_recommendations=[],
        risks=["Analysis Failed"],
        soil_type_estimation="Unknown",
        summary="Failed to generate analysis. Please check your API key and try again.",
    )


async def verify_land(
    image: Image.Image, location: str, stats_by_index: dict[str, dict]
) -> LandReport:
    """Ask the model for a verification report on one parcel.

    Any failure (no API key, transport error, refusal, unparseable output)
    yields ``fallback_report()`` instead of an exception.
    """
    if not settings.OPENAI_API_KEY:
        print("[yellow]Warning: OPENAI_API_KEY not set, skipping AI verification[/yellow]")
        return fallback_report()

    content = [
        {
            "type": "input_image",
            "image_url": f"data:image/jpeg;base64,{encode_image_pil(image)}",
            "detail": "high",
        },
        {
            "type": "input_text",
            "text": build_user_message(location, stats_by_index),
        },
    ]
    try:
        response = await settings.async_openai_client.responses.parse(
            model=settings.OPENAI_MODEL,
            instructions=INSTRUCTIONS,
            input=[{"role": "user", "content": content}],
            text_format=LandReport,
        )
        report = response.output_parsed
        if report is None:
            raise ValueError("model returned no parsed report")
        return report
    except Exception as e:
        print(f"[red]Error analyzing land image: {e}[/red]")
        return fallback_report()


async def get_general_insights(query: str) -> str:
    """Free-form question to the model; never raises."""
    if not settings.OPENAI_API_KEY:
        print("[yellow]Warning: OPENAI_API_KEY not set, skipping insights[/yellow]")
        return "Unable to retrieve insights at this time."
    try:
        response = await settings.async_openai_client.responses.create(
            model=settings.OPENAI_MODEL,
            input=query,
        )
        return response.output_text or "No insights available."
    except Exception as e:
        print(f"[red]Error getting insights: {e}[/red]")
        return "Unable to retrieve insights at this time."
