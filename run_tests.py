#!/usr/bin/env python3
"""Test runner for SMBSite with coverage reporting."""

import sys
import subprocess
import os
from pathlib import Path

def run_tests():
    """Run all tests with coverage reporting."""
    
    # Change to the project directory
    os.chdir(Path(__file__).parent)
    
    print("🧪 Running SMBSite Test Suite")
    print("=" * 50)
    
    # Install test requirements
    print("📦 Installing test requirements...")
    try:
        subprocess.run([
            sys.executable, "-m", "pip", "install", "-r", "requirements-test.txt"
        ], check=True, capture_output=True)
        print("✅ Test requirements installed successfully")
    except subprocess.CalledProcessError as e:
        print(f"❌ Failed to install test requirements: {e}")
        return False
    
    # Run tests with coverage
    print("\n🔍 Running tests with coverage...")
    try:
        result = subprocess.run([
            sys.executable, "-m", "pytest", 
            "tests/",
            "-v",
            "--cov=smbsite_pkg",
            "--cov-report=html",
            "--cov-report=term-missing",
            "--cov-fail-under=80"
        ], check=False)
        
        if result.returncode == 0:
            print("\n✅ All tests passed!")
            print("📊 Coverage report generated in htmlcov/")
            return True
        else:
            print(f"\n❌ Tests failed with return code {result.returncode}")
            return False
            
    except Exception as e:
        print(f"❌ Error running tests: {e}")
        return False

def run_config_tests():
    """Run the configuration resolver tests on their own."""
    print("\n⚙️  Running configuration tests...")
    try:
        result = subprocess.run([
            sys.executable, "-m", "pytest", 
            "tests/test_config.py",
            "tests/test_settings.py",
            "-v"
        ], check=False)
        
        if result.returncode == 0:
            print("✅ Configuration tests passed!")
            return True
        else:
            print("❌ Configuration tests failed!")
            return False
            
    except Exception as e:
        print(f"❌ Error running configuration tests: {e}")
        return False

def main():
    """Main test runner."""
    success = True
    
    # Run all tests
    if not run_tests():
        success = False
    
    # Run configuration tests
    if not run_config_tests():
        success = False
    
    print("\n" + "=" * 50)
    if success:
        print("🎉 All test suites completed successfully!")
        print("📈 Check htmlcov/index.html for detailed coverage report")
    else:
        print("💥 Some tests failed. Please review the output above.")
    
    return 0 if success else 1

if __name__ == "__main__":
    sys.exit(main())
