"""Content for in-app system messages and job promotion notifications."""

from src.core.schemas import CandidateProfile, JobPosting

_DEFAULT_TEMPLATE = """Perfect Match Alert!

Hi {{userName}},

We found a job that matches your profile and skills!

{{jobTitle}} at {{companyName}}
Location: {{jobLocation}}
Work Type: {{workType}}
Salary: {{salaryRange}}
Match Score: {{matchScore}}%

This opportunity aligns with your skills and preferences. Would you like to learn more about this position?

Reply to this message to express your interest and we'll connect you with the employer!"""

# promotion type -> (title, message); "{job}" and "{company}" are filled in.
_PROMOTIONS: dict[str, tuple[str, str]] = {
    "premium_listing": (
        "Premium Job Match Found!",
        "{job} at {company} is now a premium listing and matches your skills perfectly!",
    ),
    "featured_job": (
        "Featured Job Opportunity!",
        "{job} at {company} is now featured and looking for candidates like you!",
    ),
    "urgent_hiring": (
        "Urgent Hiring Alert!",
        "{job} at {company} is urgently hiring and you're a great match!",
    ),
    "top_match": (
        "Top Match Alert!",
        "{job} at {company} is a top match for your skills and experience!",
    ),
}
_DEFAULT_PROMOTION = (
    "New Job Promotion!",
    "{job} at {company} has been promoted and matches your profile!",
)

PROMOTION_TYPES = tuple(_PROMOTIONS)


def salary_range(job: JobPosting) -> str:
    if job.salary_from and job.salary_to:
        return f"{job.currency} {job.salary_from:,.0f} - {job.salary_to:,.0f}"
    return "Competitive salary"


def _format_score(score: float) -> str:
    return f"{score:g}"


def render_job_notification(
    job: JobPosting,
    candidate: CandidateProfile,
    score: float,
    reasons: list[str],
    template: str | None = None,
) -> str:
    """Fill a ``{{placeholder}}`` template for a job-match system message."""
    values = {
        "userName": candidate.name or "there",
        "jobTitle": job.title,
        "companyName": job.company_name or "Company",
        "jobLocation": job.location or "Not specified",
        "workType": job.work_type or "Not specified",
        "salaryRange": salary_range(job),
        "matchScore": _format_score(score),
        "matchReasons": ", ".join(reasons),
    }
    content = template or _DEFAULT_TEMPLATE
    for key, value in values.items():
        content = content.replace("{{" + key + "}}", value)
    return content


def render_promotion(job: JobPosting, promotion_type: str) -> tuple[str, str]:
    """Return (title, message) for a promotion notification."""
    title, message = _PROMOTIONS.get(promotion_type, _DEFAULT_PROMOTION)
    return title, message.format(job=job.title, company=job.company_name or "Company")


def render_email_subject(job: JobPosting) -> str:
    return f"New job match: {job.title} at {job.company_name or 'Company'}"


def render_email_body(job: JobPosting) -> str:
    lines = [
        f"A new job matching your profile has been posted: {job.title}",
        f"Company: {job.company_name or 'Company'}",
        f"Location: {job.location or 'Not specified'}",
        f"Work Type: {job.work_type or 'Not specified'}",
        f"Salary: {salary_range(job)}",
    ]
    if job.skills:
        lines.append(f"Skills: {', '.join(job.skills)}")
    return "\n".join(lines)
