"""
Basic tests for the hsi_mnf package: imports, version and configuration template
"""
import unittest
import sys
import os

# Add the package root to Python path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

try:
    import hsi_mnf
    from hsi_mnf import HS_image, HS_denoiser, MnfWorkspace
    from hsi_mnf.utils import create_config_template
    PACKAGE_AVAILABLE = True
except ImportError as e:
    PACKAGE_AVAILABLE = False
    IMPORT_ERROR = str(e)


class TestPackageImport(unittest.TestCase):
    """Test that the package can be imported correctly"""

    def test_package_import(self):
        """Test that the main package imports without errors"""
        if not PACKAGE_AVAILABLE:
            self.fail(f"Package import failed: {IMPORT_ERROR}")

        # Test that version is accessible
        self.assertTrue(hasattr(hsi_mnf, '__version__'))
        self.assertIsInstance(hsi_mnf.__version__, str)

    def test_main_classes_import(self):
        """Test that main classes can be imported"""
        if not PACKAGE_AVAILABLE:
            self.skipTest("Package not available")

        self.assertTrue(hasattr(hsi_mnf, 'HS_image'))
        self.assertTrue(hasattr(hsi_mnf, 'HS_denoiser'))
        self.assertTrue(hasattr(hsi_mnf, 'MnfWorkspace'))
        self.assertTrue(hasattr(hsi_mnf, 'ImageStatistics'))

    def test_all_exports_exist(self):
        """Test that every name in __all__ is defined"""
        if not PACKAGE_AVAILABLE:
            self.skipTest("Package not available")

        for name in hsi_mnf.__all__:
            self.assertTrue(hasattr(hsi_mnf, name), f"{name} listed in __all__ but missing")


class TestVersion(unittest.TestCase):
    """Test version information"""

    def test_version_format(self):
        """Test that version follows semantic versioning"""
        if not PACKAGE_AVAILABLE:
            self.skipTest("Package not available")

        version = hsi_mnf.__version__
        parts = version.split('.')
        self.assertEqual(len(parts), 3, f"Version {version} should have 3 parts")

        for part in parts:
            self.assertTrue(part.isdigit(), f"Version part '{part}' should be numeric")


class TestConfigurationTemplate(unittest.TestCase):
    """Test configuration template functionality"""

    def test_config_template_creation(self):
        """Test that configuration template can be created"""
        if not PACKAGE_AVAILABLE:
            self.skipTest("Package not available")

        config = create_config_template()

        for section in ['mnf', 'subset', 'output']:
            self.assertIn(section, config, f"Config should contain {section} section")

    def test_mnf_config(self):
        """Test that the MNF section is properly structured"""
        if not PACKAGE_AVAILABLE:
            self.skipTest("Package not available")

        mnf_config = create_config_template()['mnf']
        for param in ['num_retained_bands', 'use_cached_statistics', 'save_statistics', 'basefilename']:
            self.assertIn(param, mnf_config, f"MNF config should contain {param}")
        self.assertFalse(mnf_config['use_cached_statistics'])

    def test_templates_are_independent(self):
        """Test that modifying one template does not affect the next"""
        if not PACKAGE_AVAILABLE:
            self.skipTest("Package not available")

        config = create_config_template()
        config['mnf']['num_retained_bands'] = 3
        self.assertIsNone(create_config_template()['mnf']['num_retained_bands'])


if __name__ == '__main__':
    unittest.main()
