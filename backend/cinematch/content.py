"""Landing copy and demo defaults served to the front-end."""

from typing import Any, Dict

BRAND = "CineMatch AI"

DEFAULT_SCRIPT = """INT. COFFEE SHOP - DAY

A rain-streaked window. Soft jazz plays.

JAMIE (30s, disheveled) stares at a cold cup of coffee.

He looks up as the door chime rings.

A WOMAN in a red trench coat enters, shaking off an umbrella.
She spots Jamie. Freezes.

Jamie stands up, knocking over his chair. The sound cuts through the jazz."""

# Placeholder portraits for casting suggestions, cycled by index
ACTOR_IMAGES = [
    "https://images.unsplash.com/photo-1500648767791-00dcc994a43e?w=100&h=100&fit=crop",
    "https://images.unsplash.com/photo-1494790108377-be9c29b29330?w=100&h=100&fit=crop",
    "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=100&h=100&fit=crop",
    "https://images.unsplash.com/photo-1438761681033-6461ffad8d80?w=100&h=100&fit=crop",
]

PROCESSING_STEPS = [
    "Analizando texto y sentimiento...",
    "Generando storyboard...",
    "Renderizando video preliminar...",
]

ANALYSIS_ERROR = "Error processing script. Please try again."


def actor_image(index: int) -> str:
    return ACTOR_IMAGES[index % len(ACTOR_IMAGES)]


def landing_content() -> Dict[str, Any]:
    return {
        "brand": BRAND,
        "nav": [
            {"label": "El Problema", "href": "#problema"},
            {"label": "La Solución", "href": "#solucion"},
            {"label": "Simulador", "href": "#simulador"},
            {"label": "Precios", "href": "#modelo"},
        ],
        "cta": "Conecta",
        "hero": {
            "tagline": "Validación de guiones basada en Data Science.",
            "title": "No dejes el éxito al azar, haz Match.",
            "body": (
                "CineMatch AI transforma la incertidumbre creativa en éxito medible, "
                "proporcionando a las productoras datos predictivos y sugerencias de casting inteligentes."
            ),
            "cta": {"label": "PROBAR SIMULADOR", "href": "#simulador"},
        },
        "simulator": {
            "title": "Simulador de Validación y Storyboard",
            "subtitle": (
                "Sube tu guion o escribe una escena para un análisis con ScriptSense™ "
                "y generación visual."
            ),
            "input_label": "Pega tu escena aquí:",
            "submit": "Analizar y Generar Storyboard",
            "steps": PROCESSING_STEPS,
        },
        "footer": {
            "copyright": "© 2025 CineMatch AI. Un proyecto impulsado por la innovación y la Data Science.",
            "credits": "Hecho con Google Gemini & Veo.",
        },
    }
