"""caltimer command line interface."""
