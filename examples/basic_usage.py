"""
Basic usage example for hsi_mnf v0.1.0

This example demonstrates:
1. Loading an ENVI image (optionally a spatial subset)
2. MNF denoising with a reduced number of components
3. Saving and reusing cached statistics
4. Configuration templates and JSON config files
5. Folder processing
"""

import hsi_mnf
from hsi_mnf import HS_denoiser, ImageSubset, summarize_components
from hsi_mnf.utils import create_config_template

def basic_example():
    """Denoise a single image"""
    print(f"hsi_mnf version: {hsi_mnf.__version__}")
    print("Minimum Noise Fraction for Hyperspectral Images")
    print("=" * 50)

    # Example image path (replace with your actual path)
    image_path = "data/sample_image.hdr"

    try:
        print(f"\n1. Loading image: {image_path}")
        denoiser = HS_denoiser(verbose=True)
        denoiser.configure(subset=ImageSubset(start_line=0, end_line=200))
        denoiser.load_image(image_path)

        print(f"\n2. MNF denoising with 10 components")
        denoiser.configure(num_retained_bands=10, save_statistics=True)
        denoiser.run()

        table = summarize_components(denoiser.transform, denoiser.image.wavelengths)
        print(table.head(10).to_string(index=False))

        print(f"\n3. Second run from cached statistics")
        denoiser.reset()
        denoiser.configure(num_retained_bands=5, use_cached_statistics=True, save_statistics=False)
        denoiser.run()
        denoiser.save_result("data/sample_image_mnf.hdr")

    except FileNotFoundError:
        print(f"\nImage file not found: {image_path}")
        print("Please update the image_path variable with a valid .hdr file")
        print("\nDemonstrating configuration template creation instead:")
        demonstrate_config_template()

def demonstrate_config_template():
    """Show the configuration template"""
    print("\n" + "=" * 50)
    print("CONFIGURATION TEMPLATE DEMONSTRATION")
    print("=" * 50)

    config = create_config_template()
    config['mnf']['num_retained_bands'] = 10

    for section, params in config.items():
        print(f"   {section}:")
        for key, value in params.items():
            print(f"      {key}: {value}")
        print()

def demonstrate_folder_processing():
    """Show how a folder of images is processed with one configuration"""
    print("\n" + "=" * 50)
    print("FOLDER PROCESSING")
    print("=" * 50)

    print("Example usage:")
    print("   config = create_config_template()")
    print("   config['mnf']['num_retained_bands'] = 10")
    print("   HS_denoiser.process_folder('data/', output_folder='denoised/', config=config)")
    print("\nOutputs are written as <name>_mnf.hdr; images that fail are reported and skipped.")

if __name__ == "__main__":
    basic_example()
    demonstrate_folder_processing()

    print("\n" + "=" * 50)
    print("hsi_mnf v0.1.0")
    print("=" * 50)
