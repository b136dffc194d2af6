"""
External Resource Catalog

One openly-licensed enrichment link per subject, used when a module has
no linked or embedded asset.
"""

from dataclasses import dataclass

DEFAULT_SUBJECT = "Mathematics"


@dataclass(frozen=True)
class ExternalResource:
    title: str
    url: str
    license: str
    source_provider: str
    license_url: str | None = None

    @property
    def attribution_text(self) -> str:
        return f"{self.source_provider} ({self.license})"


EXTERNAL_BY_SUBJECT: dict[str, ExternalResource] = {
    "Mathematics": ExternalResource(
        title="Khan Academy practice set (grade-aligned)",
        url="https://www.khanacademy.org/math",
        license="CC BY-NC-SA (link-only)",
        license_url="https://creativecommons.org/licenses/by-nc-sa/4.0/",
        source_provider="Khan Academy",
    ),
    "English Language Arts": ExternalResource(
        title="Project Gutenberg reading set",
        url="https://www.gutenberg.org/ebooks/search/?query=children",
        license="Public Domain",
        license_url="https://www.gutenberg.org/policy/permission.html",
        source_provider="Project Gutenberg",
    ),
    "Science": ExternalResource(
        title="PhET/NOAA science resource",
        url="https://phet.colorado.edu/en/simulations/category/new",
        license="CC BY 4.0 (embed)",
        license_url="https://creativecommons.org/licenses/by/4.0/",
        source_provider="PhET",
    ),
    "Social Studies": ExternalResource(
        title="Library of Congress primary source",
        url="https://www.loc.gov/collections/",
        license="Public Domain",
        license_url="https://loc.gov/legal/",
        source_provider="Library of Congress",
    ),
}


def external_for_subject(subject: str) -> ExternalResource:
    """Catalog entry for `subject`, falling back to the default subject's entry."""
    return EXTERNAL_BY_SUBJECT.get(subject.strip(), EXTERNAL_BY_SUBJECT[DEFAULT_SUBJECT])
