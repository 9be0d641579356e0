from setuptools import find_namespace_packages, setup

setup(
    name="pyinfuse",
    version="0.1.0",
    description="Compile interpolated HTML templates and infuse them reactively",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["pyinfuse*"]),
    package_data={"pyinfuse": ["templates/*.jinja"]},
    install_requires=[
        "beautifulsoup4>=4.12",
        "soupsieve>=2.4",
        "jinja2>=3.1",
        "rich>=13.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23",
        ],
    },
    zip_safe=False,
)
