"""
Prompt templates and prompt assembly for summary generation.

Each template has a system part, sent as the system prompt, and a user part
carrying the material to summarize through `{{variable}}` placeholders.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence

from ..config.constants import DEFAULT_LOCALE, get_locale_strings
from ..exceptions import GenerationError
from ..models.post import Post
from ..models.summary import Summary, SummaryKind

logger = logging.getLogger(__name__)

VARIABLE_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")
SYSTEM_SECTION = re.compile(r"## System Message\s*\n(.*?)(?=\n---\n|\n## User Message|\Z)", re.DOTALL)
USER_SECTION = re.compile(r"## User Message\s*\n(.*)\Z", re.DOTALL)


@dataclass(frozen=True)
class PromptTemplate:
    """System and user parts of one prompt."""
    system: str
    user: str


@dataclass
class SummarizationPrompt:
    """A prompt ready to send."""
    system_prompt: str
    user_prompt: str
    kind: SummaryKind
    item_count: int


DEFAULT_PROMPT_TEMPLATES: Dict[SummaryKind, PromptTemplate] = {
    SummaryKind.WEEKLY: PromptTemplate(
        system="""You are an assistant that creates activity summaries.

Analyze the post logs provided by the user and create a weekly activity summary.

## Output Requirements
1. **Highlights**: Summarize the main activities and achievements of this week in 3-5 points
2. **Category Organization**: Categorize activities appropriately
3. **Challenges & Insights**: Summarize challenges faced and insights gained
4. **Next Week's Priorities**: Summarize items that carry over to next week

Output in Markdown format.""",
        user="""Below are this week's post logs. Please analyze and create a summary.

{{posts}}""",
    ),
    SummaryKind.MONTHLY: PromptTemplate(
        system="""You are an assistant that creates activity summaries.

Analyze the weekly summaries provided by the user and create a monthly activity summary.

## Output Requirements
1. **Monthly Highlights**: Summarize the main achievements and activities of this month in 5-7 points
2. **Progress Status**: Summarize the progress of major projects
3. **Growth & Learning**: Summarize growth achieved throughout this month
4. **Retrospective**: Organize what went well and areas for improvement
5. **Next Month's Outlook**: Summarize the direction for next month

Output in Markdown format.""",
        user="""Below are this month's weekly summaries. Please analyze and create a monthly summary.

{{weekly_summaries}}""",
    ),
    SummaryKind.YEARLY: PromptTemplate(
        system="""You are an assistant that creates activity summaries.

Analyze the monthly summaries provided by the user and create an annual activity summary.

## Output Requirements
1. **Annual Highlights**: Summarize the important achievements of this year in 7-10 points
2. **Project Summary**: Reflect on the achievements and learnings from major projects
3. **Skill Growth**: Summarize skills and knowledge that have grown
4. **Year in Numbers**: Show quantitative achievements
5. **Annual Retrospective**: Reflect on successes and challenges
6. **Next Year's Outlook**: Suggest goals for next year

Output in Markdown format.""",
        user="""Below are the monthly summaries for {{year}}. Please analyze and create an annual summary.

{{monthly_summaries}}""",
    ),
}


def build_prompt(template: str, variables: Mapping[str, str]) -> str:
    """Substitute `{{name}}` placeholders; unknown names are left as is."""
    def substitute(match):
        name = match.group(1)
        return variables[name] if name in variables else match.group(0)
    return VARIABLE_PATTERN.sub(substitute, template)


def load_prompt_template(markdown: str) -> PromptTemplate:
    """Parse a markdown file with `## System Message` and `## User Message`
    sections. A file with neither section is used whole as the system part."""
    system_match = SYSTEM_SECTION.search(markdown)
    user_match = USER_SECTION.search(markdown)
    system = system_match.group(1).strip() if system_match else ""
    user = user_match.group(1).strip() if user_match else ""
    if not system and not user:
        return PromptTemplate(system=markdown.strip(), user="")
    return PromptTemplate(system=system, user=user)


def load_prompt_templates(prompts_dir: Optional[str]) -> Dict[SummaryKind, PromptTemplate]:
    """Defaults, overridden by `weekly.md`, `monthly.md` and `yearly.md` in
    `prompts_dir` where those files exist."""
    templates = dict(DEFAULT_PROMPT_TEMPLATES)
    if not prompts_dir:
        return templates

    directory = Path(prompts_dir)
    if not directory.is_dir():
        logger.warning(f"Prompts directory {prompts_dir} not found, using default prompts")
        return templates

    for kind in SummaryKind:
        path = directory / f"{kind.value}.md"
        if path.is_file():
            templates[kind] = load_prompt_template(path.read_text(encoding="utf-8"))
            logger.info(f"Loaded {kind.value} prompt from {path}")
    return templates


class PromptBuilder:
    """Builds generation prompts for each summary kind."""

    def __init__(self, locale: str = DEFAULT_LOCALE,
                 templates: Optional[Mapping[SummaryKind, PromptTemplate]] = None):
        self.locale = locale
        self.strings = get_locale_strings(locale)
        self.templates = dict(DEFAULT_PROMPT_TEMPLATES)
        if templates:
            self.templates.update(templates)

    def build_weekly_prompt(self, posts: Sequence[Post]) -> SummarizationPrompt:
        if not posts:
            raise GenerationError("Posts list is empty")
        text = "\n".join(post.to_summary_format() for post in posts)
        return self._build(SummaryKind.WEEKLY, {"posts": text}, len(posts))

    def build_monthly_prompt(self, weekly: Sequence[Summary]) -> SummarizationPrompt:
        if not weekly:
            raise GenerationError("Weekly summaries list is empty")
        sections = [
            f"### {self.strings.week_heading.format(index=index)}\n{summary.content}"
            for index, summary in enumerate(weekly, start=1)
        ]
        return self._build(SummaryKind.MONTHLY,
                           {"weekly_summaries": "\n\n".join(sections)}, len(weekly))

    def build_yearly_prompt(self, monthly: Sequence[Summary]) -> SummarizationPrompt:
        if not monthly:
            raise GenerationError("Monthly summaries list is empty")
        sections = [
            f"### {self.strings.month_names[(summary.month or 1) - 1]}\n{summary.content}"
            for summary in monthly
        ]
        variables = {
            "monthly_summaries": "\n\n".join(sections),
            "year": str(monthly[0].year),
        }
        return self._build(SummaryKind.YEARLY, variables, len(monthly))

    def build_roll_up_prompt(self, summaries: Sequence[Summary],
                             kind: SummaryKind) -> SummarizationPrompt:
        """Prompt for a monthly or yearly summary from its child summaries."""
        if kind == SummaryKind.MONTHLY:
            return self.build_monthly_prompt(summaries)
        if kind == SummaryKind.YEARLY:
            return self.build_yearly_prompt(summaries)
        raise GenerationError(f"Cannot roll summaries up into {kind.value}")

    def _build(self, kind: SummaryKind, variables: Dict[str, str],
               item_count: int) -> SummarizationPrompt:
        template = self.templates[kind]
        return SummarizationPrompt(
            system_prompt=build_prompt(template.system, variables),
            user_prompt=build_prompt(template.user, variables),
            kind=kind,
            item_count=item_count,
        )
