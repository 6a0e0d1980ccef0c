"""
Structured output schema passed as ``GenerateContentConfig.response_schema``.

Gemini constrains its JSON to this shape; the server still re-validates the
result because the model is not strictly bound by it.
"""

FOOD_ITEM_FIELDS = (
    "label",
    "confidence",
    "calories",
    "protein_g",
    "carbs_g",
    "fat_g",
    "serving_size",
)

NUTRITION_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "items": {
            "type": "ARRAY",
            "description": "Visible food items, most prominent first",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "label": {"type": "STRING", "description": "Specific food name"},
                    "confidence": {"type": "NUMBER", "description": "0.60 to 1.0"},
                    "calories": {"type": "NUMBER", "description": "kcal for the visible serving"},
                    "protein_g": {"type": "NUMBER"},
                    "carbs_g": {"type": "NUMBER"},
                    "fat_g": {"type": "NUMBER"},
                    "serving_size": {
                        "type": "STRING",
                        "description": "Serving with weight or volume, e.g. '1 breast (150 g)'",
                    },
                },
                "required": list(FOOD_ITEM_FIELDS),
                "propertyOrdering": list(FOOD_ITEM_FIELDS),
            },
        },
    },
    "required": ["items"],
}
