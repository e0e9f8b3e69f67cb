"""Installs logmergeview and runs it with Python 3.10 - 3.13

Use this file with the `nox` tool to run logmergeview with all specified versions
of Python. For more information, see: https://nox.thea.codes/en/stable/
"""
import nox

PYTHON_VERSIONS = ["3.10", "3.11", "3.12", "3.13"]


@nox.session(python=PYTHON_VERSIONS)
def smoke_test(session):
    session.install(".")
    session.run("logmergeview", "-h")


@nox.session(python=PYTHON_VERSIONS)
def tests(session):
    session.install(".[test]")
    session.run("pytest", *session.posargs)
