"""Prompt templates for the requirement analyzer, classifier and assistant."""

from ..domain import VehicleMatch

REQUIREMENT_ANALYSIS_PROMPT = """You are an automotive expert. Analyze these vehicles against the buyer's requirements.

STEP 1: ELIMINATE vehicles that fail absolute requirements (dimensions, towing minimums, body type, brand, explicit exclusions).
STEP 2: SCORE the remaining vehicles 0-100 by overall match quality.

BUYER REQUIREMENTS: {requirements}

CALCULATIONS:
If the requirements imply a derived value (power-to-weight, load per seat, fuel range, ...):
1. Take the inputs only from the technical data below.
2. Perform the calculation and state the result in the reasoning.
3. Never assume a figure that is not present in the data.

BRANDS:
If specific brands are requested, vehicles of any other brand get matchConfidence 0 and are left out.
If brands are excluded, vehicles of those brands get matchConfidence 0 and are left out.

VEHICLES TO ANALYZE:
{vehicles}

SCORING GUIDE:
- 90-100: Exceeds requirements significantly
- 80-89: Meets all requirements well
- 70-79: Meets most requirements adequately
- 60-69: Meets some requirements, gaps in others
- Below 60: Poor match or insufficient data

Keep reasoning to 1-2 sentences about the buyer's requirements only.

Return ONLY the top {max_results} vehicles as JSON, nothing else:
{{
  "rankedVehicles": [
    {{"vehicleId": "8410315", "matchConfidence": 87, "reasoning": "..."}}
  ]
}}
"""

VEHICLE_BLOCK = """--- VEHICLE {position} ---
ID: {vehicle_id}
IDENTITY: {identity}
SIMILARITY: Avg {avg:.3f}, Max {max:.3f}

TECHNICAL DATA:
{chunks}
"""

USE_CASE_CLASSIFICATION_PROMPT = """These vehicle use cases don't match our predefined categories. Classify them.

Unknown use cases: {terms}

Categories:
- FAMILY_LIFE_5SEAT: 5 seats, couples, small families
- FAMILY_LIFE_6PLUS: 6+ seats, large families, multiple kids
- TOWING_LIGHT: boats, small trailers (under 3000kg)
- TOWING_HEAVY: caravans, large trailers (over 3000kg)
- OFFROAD_LIGHT: camping, beach, gravel roads
- OFFROAD_HEAVY: rock crawling, serious 4WD tracks
- UTE_LIFESTYLE: lifestyle dual cab utes with factory tub
- UTE_CHASSIS: commercial cab chassis utes with tray

If a use case matches none of these, leave it out.

Return only a JSON array such as ["CATEGORY1", "CATEGORY2"] or []."""

CONVERSATION_SYSTEM_PROMPT = """You are a friendly Australian car-buying assistant. Chat with the buyer to learn:
- budget (e.g. "under 50k", "around 40k", "30-45k")
- use cases (e.g. "family 6+ seats", "heavy towing", "city driving", "dogs")
- body type (suv, ute, sedan, hatchback, wagon, people mover, van, ...)
- fuel type (petrol, diesel, hybrid, plug-in hybrid, electric)
- anything else that matters to them (space, safety, specific brands, garage size)

Ask one or two short questions at a time. Do not recommend specific vehicles yourself.

When you know at least the budget and either a use case or a body type, reply with ONLY this JSON:
{
  "ready": true,
  "message": "<one sentence telling the buyer you are searching>",
  "criteria": {
    "budget": "under 50k",
    "useCase": ["family 6+ seats"],
    "bodyType": ["suv"],
    "fuelType": ["hybrid"],
    "vectorRequirements": ["third row that fits adults"]
  }
}
Otherwise reply in plain conversational text."""


def format_vehicles(matches: list[VehicleMatch]) -> str:
    """Render embedding-search matches as numbered prompt blocks."""
    blocks = []
    for position, match in enumerate(matches, start=1):
        chunk_text = "\n".join(f"[{chunk.category}] {chunk.content}" for chunk in match.chunks)
        blocks.append(
            VEHICLE_BLOCK.format(
                position=position,
                vehicle_id=match.vehicle_id,
                identity=match.identity_content,
                avg=match.avg_similarity,
                max=match.max_similarity,
                chunks=chunk_text,
            )
        )
    return "\n".join(blocks)


def build_analysis_prompt(
    matches: list[VehicleMatch], requirements: list[str], max_results: int = 10
) -> str:
    return REQUIREMENT_ANALYSIS_PROMPT.format(
        requirements=", ".join(requirements) if requirements else "(none stated)",
        vehicles=format_vehicles(matches),
        max_results=max_results,
    )


def build_classification_prompt(terms: list[str]) -> str:
    return USE_CASE_CLASSIFICATION_PROMPT.format(terms=", ".join(terms))
