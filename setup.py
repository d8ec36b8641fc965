from setuptools import setup, find_packages

setup(
    name="superres",
    version="0.1.0",
    description="Multi-frame super-resolution by MAP estimation",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=["superres", "superres.*"]),
    python_requires=">=3.9",
    install_requires=[
        "jax>=0.4.31",
        "jaxtyping",
        "einops",
        "optax>=0.2.3",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest", "matplotlib"],
    },
)
