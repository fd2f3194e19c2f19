"""Prompt templates for label analysis and tasting summaries."""

import json

from wine_journal.core.schema import SummaryRequest

LABEL_ANALYSIS_PROMPT = """Please analyze this wine bottle photo and provide detailed information about the wine, including a comprehensive taste profile.

Return your analysis in the following JSON format:
{
  "wineName": "Name of the wine",
  "wineType": "Type (e.g., Red Wine, White Wine, Rosé, Sparkling)",
  "region": "Wine region/appellation if visible",
  "vintage": "Year if visible (number only)",
  "grapeVarieties": ["Array of grape varieties if known"],
  "tastingNotes": "Expected tasting notes and characteristics based on the wine",
  "tasteProfile": {
    "fruit": 3,
    "citrus": 2,
    "floral": 1,
    "herbal": 2,
    "earthy": 3,
    "mineral": 2,
    "spice": 2,
    "oak": 3,
    "sweetness": 1,
    "acidity": 4,
    "tannin": 4,
    "alcohol": 3,
    "body": 4,
    "primaryFlavors": ["Blackberry", "Plum", "Vanilla"],
    "secondaryFlavors": ["Tobacco", "Cedar", "Dark Chocolate"]
  },
  "interestingFact": "An interesting fact about this wine, winery, or region",
  "confidence": "Confidence level from 0.0 to 1.0"
}

For the taste profile, rate each characteristic on a scale of 0-5:
- Flavor intensities (fruit, citrus, floral, herbal, earthy, mineral, spice, oak): How prominent each flavor category is
- Wine structure (sweetness, acidity, tannin, alcohol): The wine's structural components
- Body: 1=Light, 2=Light-Medium, 3=Medium, 4=Medium-Full, 5=Full
- Primary flavors: 3-5 main flavors you'd expect to taste
- Secondary flavors: 2-4 complex flavors from aging/winemaking

Base your analysis on what you can see in the image (grape variety, region, vintage, wine style) and your knowledge of typical characteristics for that type of wine. If you can't determine something from the image, provide educated estimates based on visible wine type and region, but indicate lower confidence."""

SUMMARY_SYSTEM_PROMPT = """You are a WSET-trained sommelier assistant. Based on the provided wine details and tasting notes, produce:
- summary: concise overview (2-3 sentences)
- tags: sensory descriptors in lowercase, kebab-case when useful (at most 8)
- foodPairings: thoughtful pairing suggestions (at most 6)
Only rely on provided data; do not invent facts.
Respond with valid JSON only."""


def build_summary_prompt(request: SummaryRequest) -> str:
    """
    Build the user message for a tasting summary.

    Args:
        request: The wine details and notes to summarize.

    Returns:
        The wine details as indented JSON, omitting empty fields.
    """
    payload = request.model_dump(by_alias=True, exclude_none=True)
    return json.dumps(payload, indent=2, ensure_ascii=False)
