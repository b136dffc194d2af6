"""
Gap Filling Errors

Lookup errors skip a single module; anything else aborts the run.
"""


class SubjectNotFoundError(LookupError):
    """Raised when a module's subject has no subject record. The module is skipped."""
    def __init__(self, subject: str, module_slug: str):
        super().__init__(f"Subject id missing for {subject}, skipping {module_slug}")
        self.subject = subject
        self.module_slug = module_slug
