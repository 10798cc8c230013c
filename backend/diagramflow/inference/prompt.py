SYSTEM_PROMPT = (
    "You are an assistant specialised in creating diagrams. "
    "You answer only with valid JSON in the requested format."
)

IMAGE_UNSUPPORTED_NOTE = (
    " (Note: an image was provided but the selected model does not support image analysis)"
)

DIAGRAM_PROMPT_TEMPLATE = """
Generate a diagram based on this description: "{description}".

Respond ONLY with a valid JSON object containing two arrays: "nodes" and "edges".

IMPORTANT: Do NOT put backticks (```) at the start or end of your answer. Do not format your answer as a code block. Return only the raw JSON object.

Expected format:
{{
  "nodes": [
    {{
      "id": "1",
      "label": "Node name",
      "position": {{ "x": 100, "y": 100 }},
      "style": {{ "backgroundColor": "#color", "borderRadius": "8px", "padding": "10px", "border": "1px solid #color" }}
    }},
    ...
  ],
  "edges": [
    {{ "id": "e1-2", "source": "1", "target": "2", "label": "Connection description" }},
    ...
  ]
}}

IMPORTANT for positioning:
- Organise nodes hierarchically and logically
- For org charts: put top-level elements at the top
- For process flows: arrange steps left to right or top to bottom
- For mind maps: put the main concept in the centre
- Avoid overlapping nodes
- Use consistent x,y coordinates (e.g. parent nodes above their children)
- Space nodes at least 150 pixels apart on the x axis and 100 pixels on the y axis

Use appropriate, consistent colours to represent different kinds of elements.
Do NOT include any explanatory text, only the JSON object.

REMINDER: Do NOT put backticks (```) or the keyword "json" in your answer. Return only the raw JSON object.
"""


def build_diagram_prompt(description: str) -> str:
    return DIAGRAM_PROMPT_TEMPLATE.format(description=description.strip())
