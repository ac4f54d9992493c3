#!/usr/bin/env python3
"""
Plaque Preview - Development Runner
Run this script to start the development server
"""

import os
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

# Set environment defaults
os.environ.setdefault('FLASK_APP', 'plaque_preview')
os.environ.setdefault('FLASK_ENV', 'development')

try:
    from plaque_preview import create_app

    def main():
        """Main entry point"""
        print("=" * 60)
        print("Plaque Preview - Development Server")
        print("=" * 60)

        # Create and configure the app
        app = create_app()

        # Print startup info
        print(f"Environment: {app.config.get('FLASK_ENV', 'unknown')}")
        print(f"Debug mode: {app.config.get('DEBUG', False)}")
        print(f"Log level: {app.config.get('LOG_LEVEL', 'INFO')}")

        if not Path('config/settings.yaml').exists():
            print("⚠️  Missing config file: config/settings.yaml")
            print("   Built-in defaults will be used.")

        # Check that every configured plaque texture is present
        bg_dir = Path(app.config['ASSETS_DIR']) / 'backgrounds'
        missing = [name for name in app.config['PLAQUE_STYLES'].values() if not (bg_dir / name).exists()]
        if missing:
            print(f"⚠️  Missing plaque textures in {bg_dir}: {', '.join(missing)}")
            print("   Only the 'blank' style will render until they are added.")

        print("-" * 60)
        print("Starting development server...")
        print("POST a plaque configuration to: http://localhost:5000/api/preview/generate")
        print("Press Ctrl+C to stop")
        print("-" * 60)

        # Run the development server
        app.run(
            host='0.0.0.0',
            port=5000,
            debug=app.config.get('DEBUG', True),
            use_reloader=True,
            threaded=True
        )

    if __name__ == '__main__':
        main()

except ImportError as e:
    print(f"❌ Import error: {e}")
    print("\nPlease install the required dependencies:")
    print("  pip install -e .")
    sys.exit(1)
