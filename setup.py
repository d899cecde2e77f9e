import setuptools

setuptools.setup(
    name="dicedist",
    version="0.3.0",
    classifiers=["Programming Language :: Python :: 3"],
    packages=setuptools.find_packages(exclude=["tests"]),
    package_data={"dicedist": ["settings.default.yaml"]},
    python_requires=">=3.8",
    install_requires=["pyyaml", "plotly", "kaleido", "pandas"],
    extras_require={"test": ["pytest"]},
)
