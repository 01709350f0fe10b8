import unittest
import sys
import os

# Add the parent directory to the Python path so we can import the streamchat package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

if __name__ == '__main__':
    # Discover every test module in this directory
    test_suite = unittest.TestLoader().discover(
        os.path.dirname(os.path.abspath(__file__)),
        top_level_dir=os.path.abspath(os.path.join(os.path.dirname(__file__), '..')),
    )

    # Run the tests
    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(test_suite)
    sys.exit(0 if result.wasSuccessful() else 1)
