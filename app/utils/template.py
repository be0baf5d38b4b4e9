from pathlib import Path
from jinja2 import BaseLoader, Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"])
)

# DB templates are authored by admins as HTML, so no autoescape
string_env = Environment(loader=BaseLoader(), autoescape=False)


def render_template(template_path: str, **context) -> str:
    template = env.get_template(template_path)
    return template.render(**context)


def render_string(source: str, **context) -> str:
    return string_env.from_string(source).render(**context)
