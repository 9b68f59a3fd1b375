from setuptools import find_packages, setup

setup(
    name="mgmtapi",
    version="0.0.0",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "urllib3",
        "pydantic>=2.5",
        "cryptography",
        "click",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
