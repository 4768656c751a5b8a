"""
Dockerfile generation for the development image.
"""

from typing import List

from ..config.settings import AppSettings

BASE_PACKAGES = [
    "curl",
    "wget",
    "git",
    "vim",
    "nano",
    "unzip",
    "build-essential",
    "ca-certificates",
    "gnupg",
    "lsb-release",
    "software-properties-common",
    "apt-transport-https",
    "sudo",
]


def _continued(items: List[str], indent: str = "    ") -> str:
    return " \\\n".join(f"{indent}{item}" for item in items)


def render_dockerfile(settings: AppSettings) -> str:
    """Render the image build file from the toolchain settings."""
    tc = settings.toolchain
    env = settings.environment
    user = tc.container_user
    startup = env.startup_script

    sections = [
        f"FROM {tc.base_image}",
        "# Non-interactive package installation\n"
        "ENV DEBIAN_FRONTEND=noninteractive\n"
        f"ENV TZ={tc.timezone}",
        "# Base tools\n"
        "RUN apt-get update && apt-get install -y \\\n"
        f"{_continued(BASE_PACKAGES)} \\\n"
        "    && rm -rf /var/lib/apt/lists/*",
        "# Node.js\n"
        f"RUN curl -fsSL https://deb.nodesource.com/setup_{tc.node_major}.x | bash - \\\n"
        "    && apt-get install -y nodejs \\\n"
        "    && rm -rf /var/lib/apt/lists/*",
        "# Java\n"
        f"RUN apt-get update && apt-get install -y openjdk-{tc.java_version}-jdk \\\n"
        "    && rm -rf /var/lib/apt/lists/*\n"
        f"ENV JAVA_HOME=/usr/lib/jvm/java-{tc.java_version}-openjdk-amd64\n"
        "ENV PATH=$PATH:$JAVA_HOME/bin",
        "# Maven\n"
        f"RUN wget -q {tc.maven_download_url} \\\n"
        f"    && tar xzf apache-maven-{tc.maven_version}-bin.tar.gz -C /opt \\\n"
        f"    && ln -s /opt/apache-maven-{tc.maven_version} /opt/maven \\\n"
        f"    && rm apache-maven-{tc.maven_version}-bin.tar.gz\n"
        "ENV MAVEN_HOME=/opt/maven\n"
        "ENV PATH=$PATH:$MAVEN_HOME/bin",
        "# Gradle\n"
        f"RUN wget -q {tc.gradle_download_url} \\\n"
        f"    && unzip -q gradle-{tc.gradle_version}-bin.zip -d /opt \\\n"
        f"    && ln -s /opt/gradle-{tc.gradle_version} /opt/gradle \\\n"
        f"    && rm gradle-{tc.gradle_version}-bin.zip\n"
        "ENV GRADLE_HOME=/opt/gradle\n"
        "ENV PATH=$PATH:$GRADLE_HOME/bin",
        "# Go\n"
        f"RUN wget -q {tc.go_download_url} \\\n"
        f"    && tar -C /usr/local -xzf go{tc.go_version}.linux-amd64.tar.gz \\\n"
        f"    && rm go{tc.go_version}.linux-amd64.tar.gz\n"
        "ENV PATH=$PATH:/usr/local/go/bin\n"
        "ENV GOPATH=/go\n"
        f"ENV GOPROXY={env.go_proxy}",
        "# Python\n"
        "RUN apt-get update && apt-get install -y \\\n"
        "    python3 \\\n"
        "    python3-pip \\\n"
        "    python3-venv \\\n"
        "    && rm -rf /var/lib/apt/lists/* \\\n"
        "    && ln -s /usr/bin/python3 /usr/bin/python",
        "RUN pip3 install --no-cache-dir \\\n" f"{_continued(tc.python_packages)}",
        "# AI coding assistant (API key is configured after the container starts)\n"
        f"RUN curl -fsSL {tc.assistant_install_url} | bash \\\n"
        '    || echo "AI assistant installation needs manual setup after startup"',
        "# Web editor\n" f"RUN curl -fsSL {tc.editor_install_url} | sh",
        "# Development user\n"
        f"RUN useradd -m -s /bin/bash {user} \\\n"
        f"    && usermod -aG sudo {user} \\\n"
        f'    && echo "{user} ALL=(ALL) NOPASSWD:ALL" >> /etc/sudoers \\\n'
        f"    && mkdir -p {env.container_workspace} /go \\\n"
        f"    && chown -R {user}:{user} {env.container_workspace} /go",
        f"COPY {startup} /{startup}\n" f"RUN chmod +x /{startup}",
        f"USER {user}\n" f"WORKDIR {env.container_workspace}",
        f"EXPOSE {env.editor_port}",
        f'CMD ["python3", "/{startup}"]',
    ]

    return "\n\n".join(sections) + "\n"
