"""
Tests for Dockerfile generation.
"""

from devenv.config.settings import AppSettings, ToolchainSettings
from devenv.templates.dockerfile import BASE_PACKAGES, render_dockerfile


class TestDockerfileTemplate:
    def test_default_image(self, app_settings):
        text = render_dockerfile(app_settings)

        assert text.startswith("FROM ubuntu:22.04\n")
        assert "ENV TZ=Asia/Shanghai" in text
        assert "openjdk-17-jdk" in text
        assert "apache-maven-3.9.6-bin.tar.gz" in text
        assert "gradle-8.5-bin.zip" in text
        assert "go1.23.5.linux-amd64.tar.gz" in text
        assert "EXPOSE 8080" in text
        assert 'CMD ["python3", "/startup.py"]' in text
        assert text.endswith("\n")

    def test_every_base_package_installed(self, app_settings):
        text = render_dockerfile(app_settings)

        for package in BASE_PACKAGES:
            assert f"    {package}" in text

    def test_toolchain_overrides(self):
        settings = AppSettings(
            toolchain=ToolchainSettings(
                base_image="ubuntu:24.04",
                go_version="1.22.1",
                container_user="dev",
                python_packages=["httpx"],
            )
        )

        text = render_dockerfile(settings)

        assert text.startswith("FROM ubuntu:24.04\n")
        assert "go1.22.1.linux-amd64.tar.gz" in text
        assert "useradd -m -s /bin/bash dev" in text
        assert "USER dev" in text
        assert "    httpx" in text
        assert "    pandas" not in text

    def test_startup_script_is_copied(self, app_settings):
        text = render_dockerfile(app_settings)

        assert "COPY startup.py /startup.py" in text
        assert "RUN chmod +x /startup.py" in text
