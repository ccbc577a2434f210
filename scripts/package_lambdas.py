#!/usr/bin/env python3
"""
Lambda packaging script for Fleet Status API deployment.

This script creates the deployment package for the status Lambda function,
optionally bundling the runtime dependencies declared in pyproject.toml.
"""

import argparse
import os
import sys
import zipfile
import subprocess
import tempfile
import tomllib
from pathlib import Path
from typing import List

def read_dependencies(pyproject_file: str) -> List[str]:
    """
    Read runtime dependencies from pyproject.toml.

    Args:
        pyproject_file: Path to pyproject.toml

    Returns:
        List of dependency specifiers
    """
    with open(pyproject_file, 'rb') as f:
        pyproject = tomllib.load(f)
    return pyproject.get('project', {}).get('dependencies', [])

def install_dependencies(dependencies: List[str], target_dir: str) -> bool:
    """
    Install Python dependencies to target directory.

    Args:
        dependencies: Dependency specifiers to install
        target_dir: Directory to install dependencies

    Returns:
        True if successful, False otherwise
    """
    if not dependencies:
        print("No dependencies to install")
        return True

    print(f"Installing {', '.join(dependencies)} to {target_dir}")

    try:
        subprocess.run([
            sys.executable, "-m", "pip", "install",
            *dependencies,
            "-t", target_dir,
            "--upgrade"
        ], check=True, capture_output=True, text=True)
        return True
    except subprocess.CalledProcessError as e:
        print(f"Error installing dependencies: {e}")
        print(f"stdout: {e.stdout}")
        print(f"stderr: {e.stderr}")
        return False

def add_tree(zipf: zipfile.ZipFile, directory: str, prefix: str = '') -> None:
    """Add all Python files below a directory to the archive."""
    for root, dirs, files in os.walk(directory):
        # Skip __pycache__ directories
        dirs[:] = [d for d in dirs if d != '__pycache__']

        for file in files:
            if file.endswith('.py'):
                file_path = os.path.join(root, file)
                arcname = os.path.join(prefix, os.path.relpath(file_path, directory))
                zipf.write(file_path, arcname)

def create_lambda_package(function_name: str, source_dir: str, output_dir: str,
                          dependencies: List[str] = None) -> str:
    """
    Create a deployment package for a Lambda function.

    The function's index.py lands at the archive root next to the shared
    package, matching the `index.lambda_handler` handler setting.

    Args:
        function_name: Name of the Lambda function
        source_dir: Source directory containing the function code
        output_dir: Output directory for the package
        dependencies: Dependencies to bundle, None to rely on the Lambda runtime

    Returns:
        Path to the created package
    """
    print(f"Building package for {function_name}...")

    os.makedirs(output_dir, exist_ok=True)
    package_path = os.path.join(output_dir, f"{function_name}.zip")

    if os.path.exists(package_path):
        os.remove(package_path)

    with tempfile.TemporaryDirectory() as temp_dir:
        if dependencies and not install_dependencies(dependencies, temp_dir):
            raise RuntimeError(f"Failed to install dependencies for {function_name}")

        with zipfile.ZipFile(package_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            # Add dependencies first
            if dependencies:
                for root, dirs, files in os.walk(temp_dir):
                    dirs[:] = [d for d in dirs if d != '__pycache__']
                    for file in files:
                        if not file.endswith('.pyc'):
                            file_path = os.path.join(root, file)
                            zipf.write(file_path, os.path.relpath(file_path, temp_dir))

            add_tree(zipf, os.path.join(source_dir, function_name))
            add_tree(zipf, os.path.join(source_dir, 'shared'), 'shared')

    package_size = os.path.getsize(package_path)
    print(f"Package created: {package_path} ({package_size / 1024 / 1024:.2f} MB)")

    return package_path

def main():
    """Main packaging function."""
    parser = argparse.ArgumentParser(description="Package the Fleet Status API Lambda function")
    parser.add_argument('--with-deps', action='store_true',
                        help="Bundle runtime dependencies instead of using the Lambda-provided boto3")
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    source_dir = os.path.join(project_root, 'src')
    output_dir = os.path.join(project_root, 'dist')

    dependencies = read_dependencies(os.path.join(project_root, 'pyproject.toml')) if args.with_deps else None

    try:
        create_lambda_package('status', source_dir, output_dir, dependencies)
        print("Package built successfully!")
    except Exception as e:
        print(f"Error during packaging: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
