"""Build setup strategies used across the tests."""

from typing import Any, Dict

from aws_cdk import aws_codebuild as codebuild

from codebuild_automation.configuration import BuildConfiguration


def make_build(name: str, **extra: Any) -> Dict[str, Any]:
    """Minimal CfnProject properties for a GitHub-sourced build."""
    build = {
        "name": name,
        "service_role": "arn:aws:iam::123456789012:role/codebuild",
        "source": codebuild.CfnProject.SourceProperty(
            type="GITHUB",
            location=f"https://github.com/example-org/{name}.git",
        ),
        "artifacts": codebuild.CfnProject.ArtifactsProperty(type="NO_ARTIFACTS"),
        "environment": codebuild.CfnProject.EnvironmentProperty(
            type="LINUX_CONTAINER",
            compute_type="BUILD_GENERAL1_SMALL",
            image="aws/codebuild/standard:7.0",
        ),
    }
    build.update(extra)
    return build


def ci_only_setup(project: Dict[str, Any]) -> Dict[str, BuildConfiguration]:
    return {"ci": BuildConfiguration(build=make_build(project["name"]))}


def ci_and_pr_setup(project: Dict[str, Any]) -> Dict[str, BuildConfiguration]:
    return {
        "ci": BuildConfiguration(
            build=make_build(f"{project['name']}-ci"),
            webhook_filter_groups=[[codebuild.CfnProject.WebhookFilterProperty(type="EVENT", pattern="PUSH")]],
        ),
        "pr": BuildConfiguration(build=make_build(f"{project['name']}-pr")),
    }

