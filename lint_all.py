from invoke import Context, task

TARGET = "."


@task
def sort_imports(c: Context) -> None:
    """Sort imports using isort."""
    print("🔹 Running isort...")
    c.run(f"isort {TARGET}")


@task
def format_code(c: Context) -> None:
    """Format code using black."""
    print("🔹 Running black...")
    c.run(f"black {TARGET}")


@task
def lint(c: Context) -> None:
    """Lint code using ruff."""
    print("🔹 Running ruff...")
    c.run(f"ruff check {TARGET} --fix")


@task
def type_check(c: Context) -> None:
    """Check types using mypy."""
    print("🔹 Running mypy...")
    c.run("mypy config src")


@task
def security_check(c: Context) -> None:
    """Check for security issues using bandit."""
    print("🔹 Running bandit...")
    # Tests use assert statements, so only scan library code
    c.run("bandit -r config src")


@task
def test(c: Context) -> None:
    """Run the test suite using pytest."""
    print("🔹 Running pytest...")
    c.run("pytest tests")


@task(pre=[sort_imports, format_code, lint, type_check, security_check, test])
def all(c: Context) -> None:
    """Run all formatters, linters, checks and tests in order."""
    print("\n✅ All checks completed successfully!")
