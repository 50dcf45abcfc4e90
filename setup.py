from setuptools import find_packages, setup

with open("requirements.txt", "r") as f:
    requirements = list(map(str.strip, f.read().split("\n")))[:-1]

setup(
    name="ez-task",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    description="A self-driving, single-result task for Python coroutines that can be resumed from any thread.",
    license="MIT",
    install_requires=requirements,
    extras_require={
        "test": ["pytest", "pytest-asyncio-cooperative"],
    },
    python_requires=">=3.8",
    package_data={
        "ez_task": ["py.typed"],
    },
    include_package_data=True,
    zip_safe=False,
)
