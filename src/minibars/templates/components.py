"""Card components used by the site's meeting, newsletter, resource and glossary pages."""

from typing import Any, Callable, Dict

from jinja2 import ChainableUndefined, DictLoader, pass_context, sandbox

from .context import RenderContext
from .helpers import capitalize, format_date, ignores_context

NEWSLETTER_CARD = """\
<div class="newsletter-card">
  <div class="card-header">
    <h3>{{ newsletter.title }}</h3>
    <p class="quarter">{{ newsletter.quarter }} Quarter {{ newsletter.year }}</p>
  </div>
  <div class="card-content">
    <p class="publish-date">Published: {{ newsletter.publishDate | formatDate('short') }}</p>
    <p class="description">{{ newsletter.description }}</p>
    {% if newsletter.highlights %}
    <ul class="highlights">
      {% for highlight in newsletter.highlights %}
      <li>{{ highlight }}</li>
      {% endfor %}
    </ul>
    {% endif %}
    <a href="{{ newsletter.filePath }}" class="btn btn-primary" target="_blank">
      <i class="fas fa-file-pdf"></i> Download PDF
    </a>
  </div>
</div>
"""

MEETING_CARD = """\
<div class="meeting-card">
  <div class="card-header">
    <h3>{{ meeting.title or meeting.topic or 'SAPA Meeting' }}</h3>
    <p class="date">{{ meeting.date | formatDate('long') }}</p>
  </div>
  <div class="card-content">
    <p class="time">
      <i class="fas fa-clock"></i>
      Doors open: {{ meeting.time.doorsOpen }}
      {% if meeting.time.meetingStart %} | Meeting: {{ meeting.time.meetingStart }}{% endif %}
    </p>
    <p class="location">
      <i class="fas fa-map-marker-alt"></i>
      {{ meeting.location.name }}{% if meeting.location.building %}, {{ meeting.location.building }}{% endif %}
    </p>
    {% if meeting.presenter %}
    <p class="presenter">
      <i class="fas fa-user"></i>
      Presenter: {{ meeting.presenter.name }}{% if meeting.presenter.title %} ({{ meeting.presenter.title }}){% endif %}
    </p>
    {% endif %}
    {% if meeting.description %}
    <p class="description">{{ meeting.description }}</p>
    {% endif %}
    {% if meeting.specialNotes %}
    <div class="special-notes">
      <strong>Special Notes:</strong>
      <ul>
        {% for note in meeting.specialNotes %}
        <li>{{ note }}</li>
        {% endfor %}
      </ul>
    </div>
    {% endif %}
  </div>
</div>
"""

RESOURCE_CARD = """\
<div class="resource-card">
  <div class="card-header">
    <h3>{{ resource.title }}</h3>
    <div class="meta">
      <span class="difficulty {{ resource.difficulty }}">{{ resource.difficulty | capitalize }}</span>
      <span class="category">{{ resource.category | replace('-', ' ', 1) | capitalize }}</span>
      {% if resource.estimatedReadTime %}
      <span class="read-time">{{ resource.estimatedReadTime }} min read</span>
      {% endif %}
    </div>
  </div>
  <div class="card-content">
    <p class="summary">{{ resource.summary }}</p>
    {% if resource.tags %}
    <div class="tags">
      {% for tag in resource.tags %}<span class="tag">{{ tag }}</span>{% endfor %}
    </div>
    {% endif %}
    <a href="/resources/{{ resource.slug }}" class="btn btn-primary">Read More</a>
  </div>
</div>
"""

GLOSSARY_TERM = """\
<div class="glossary-term">
  <h3 class="term-name">{{ term.term }}</h3>
  {% if term.alternateNames %}
  <p class="alternate-names">
    Also known as: {{ term.alternateNames | join(', ') }}
  </p>
  {% endif %}
  <p class="definition">{{ term.definition }}</p>
  {% if term.detailedDescription %}
  <p class="detailed-description">{{ term.detailedDescription }}</p>
  {% endif %}
  <div class="term-meta">
    <span class="category">{{ term.category | replace('-', ' ', 1) | capitalize }}</span>
    <span class="difficulty {{ term.difficulty }}">{{ term.difficulty | capitalize }}</span>
  </div>
</div>
"""

# Card variable holding the minibars RenderContext the component was called with
RENDER_CONTEXT_VAR = "render_context"

# component name -> (template file, keyword argument carrying the record)
SITE_COMPONENTS = {
    "newsletterCard": ("newsletter_card.html", "newsletter"),
    "meetingCard": ("meeting_card.html", "meeting"),
    "resourceCard": ("resource_card.html", "resource"),
    "glossaryTerm": ("glossary_term.html", "term"),
}


def _helper_filter(engine: Any, name: str, fallback: Callable[..., Any]) -> Callable:
    """Expose an engine helper as a Jinja2 filter, honouring overrides.

    The helper is called like any other, with the minibars render context
    as its last argument.
    """
    fallback = ignores_context(fallback)

    @pass_context
    def apply(card_context: Any, value: Any, *args: Any) -> Any:
        helper = engine.get_helper(name) or fallback
        render_context = card_context.get(RENDER_CONTEXT_VAR)
        if render_context is None:
            render_context = RenderContext()
        return helper(value, *args, render_context)

    return apply


def create_component_environment(engine: Any) -> sandbox.SandboxedEnvironment:
    """Create the sandboxed, autoescaping environment the cards render in.

    Args:
        engine: TemplateEngine whose helpers back the date and case filters

    Returns:
        Configured Jinja2 environment
    """
    env = sandbox.SandboxedEnvironment(
        loader=DictLoader(
            {
                "newsletter_card.html": NEWSLETTER_CARD,
                "meeting_card.html": MEETING_CARD,
                "resource_card.html": RESOURCE_CARD,
                "glossary_term.html": GLOSSARY_TERM,
            }
        ),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=ChainableUndefined,
    )
    env.filters["formatDate"] = _helper_filter(engine, "formatDate", format_date)
    env.filters["capitalize"] = _helper_filter(engine, "capitalize", capitalize)
    return env


def _card_component(template: Any, arg_name: str) -> Callable[[Dict[str, Any], Any], str]:
    def render_card(args: Dict[str, Any], context: Any) -> str:
        record = args.get(arg_name)
        if not record:
            return ""
        return template.render({arg_name: record, RENDER_CONTEXT_VAR: context})

    return render_card


def register_site_components(engine: Any) -> None:
    """Register the site's card components with a template engine.

    Usage from a template::

        {{#each meetings}}{{component:meetingCard meeting=this}}{{/each}}

    Args:
        engine: TemplateEngine instance
    """
    env = create_component_environment(engine)
    for name, (template_name, arg_name) in SITE_COMPONENTS.items():
        engine.register_component(
            name, _card_component(env.get_template(template_name), arg_name)
        )
