"""Shared pytest fixtures for CareerPath tests."""

import pytest

from careerpath.models import JobPosting, LearningResource, Profile


@pytest.fixture()
def frontend_profile() -> Profile:
    return Profile(
        id="user-1",
        name="Ada",
        skills=["React", "CSS"],
        preferred_track="Frontend",
        experience_level="Junior",
    )


@pytest.fixture()
def frontend_job() -> JobPosting:
    return JobPosting(
        id="job-1",
        title="Junior Frontend Developer",
        company="Acme",
        location="Dhaka",
        required_skills=["React", "CSS", "Node.js"],
        track="frontend",
        experience_level="Junior",
        job_type="Full-time",
    )


@pytest.fixture()
def docker_corpus() -> list[JobPosting]:
    """Four jobs; Docker is required by two of them."""
    return [
        JobPosting(id="j1", title="Backend Dev", required_skills=["Python", "Docker"], track="Backend"),
        JobPosting(id="j2", title="DevOps Engineer", required_skills=["Python", "Docker"], track="DevOps"),
        JobPosting(id="j3", title="Data Analyst", required_skills=["Python"], track="Data"),
        JobPosting(id="j4", title="Data Engineer", required_skills=["Python", "SQL"], track="Data"),
    ]


@pytest.fixture()
def python_profile() -> Profile:
    return Profile(id="user-2", skills=["Python"], experience_level="Mid")


@pytest.fixture()
def catalog() -> list[LearningResource]:
    return [
        LearningResource(id="r1", title="Docker & Kubernetes", related_skills=["Docker", "Kubernetes"], cost="Paid"),
        LearningResource(id="r2", title="Docker Basics", related_skills=["Docker"]),
        LearningResource(id="r3", title="CSS Grid", related_skills=["CSS"]),
        LearningResource(
            id="r4",
            title="Container Bootcamp",
            related_skills=["Kubernetes", "Docker", "Docker Compose"],
            cost="Paid",
        ),
        LearningResource(id="r5", title="Kubernetes Crash Course", related_skills=["Kubernetes"]),
    ]
