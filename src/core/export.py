"""
SwiftInstall - Export
Renders the software list as JSON or as a standalone install script.
"""

import json

from core.config import InstallRequest

FORMATS = {
    "json": "json",
    "powershell": "powershell",
    "ps1": "powershell",
    "bash": "bash",
    "sh": "bash",
}


def export_json(packages: list[InstallRequest]) -> str:
    return json.dumps([p.to_dict() for p in packages], indent=2, ensure_ascii=False)


def export_powershell(packages: list[InstallRequest]) -> str:
    lines = [
        "# SwiftInstall PowerShell Installation Script",
        "# Generated by SwiftInstall",
        "",
        "$packages = @(",
    ]
    lines += [f'    "{p.package_id}",' for p in packages]
    lines += [
        ")",
        "",
        "foreach ($package in $packages) {",
        '    Write-Host "Installing $package..." -ForegroundColor Cyan',
        "    winget install --id $package --exact --silent --accept-package-agreements --accept-source-agreements",
        "}",
        "",
        'Write-Host "Installation complete!" -ForegroundColor Green',
    ]
    return "\n".join(lines) + "\n"


def export_bash(packages: list[InstallRequest]) -> str:
    lines = [
        "#!/bin/bash",
        "# SwiftInstall Bash Installation Script",
        "# Generated by SwiftInstall",
        "",
        "packages=(",
    ]
    lines += [f'    "{p.package_id}"' for p in packages]
    lines += [
        ")",
        "",
        'for package in "${packages[@]}"; do',
        '    echo "Installing $package..."',
        '    brew install "$package"',
        "done",
        "",
        'echo "Installation complete!"',
    ]
    return "\n".join(lines) + "\n"


def export_packages(packages: list[InstallRequest], fmt: str) -> str:
    """
    Render packages in the given format.

    Raises:
        ValueError: If the format is not supported.
    """
    kind = FORMATS.get(fmt.lower())
    if kind is None:
        raise ValueError(f"Unsupported format: {fmt}")
    if kind == "json":
        return export_json(packages)
    if kind == "powershell":
        return export_powershell(packages)
    return export_bash(packages)
