#!/usr/bin/env python3
"""
Configuration Validation Tool

Validates the scene and GA YAML configuration files for path evolution
and provides detailed feedback about parameter values and potential issues.
"""

import sys
import argparse
from pathlib import Path
from typing import Dict, Any

import numpy as np

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))

from world.config_loader import load_config, validate_scene_config
from path_ga.config import DEFAULT_GA_CONFIG, merge_config, validate_ga_config
from path_ga.fitness import theoretical_maximum_fitness


class ConfigValidator:
    """Configuration validator with detailed feedback"""

    def __init__(self):
        self.warnings = []
        self.errors = []
        self.recommendations = []

    def validate_comprehensive(self, scene_path: str, ga_path: str) -> Dict[str, Any]:
        """Perform comprehensive validation with detailed feedback"""
        self.warnings = []
        self.errors = []
        self.recommendations = []

        try:
            scene_config = load_config(scene_path)
            ga_config = merge_config(DEFAULT_GA_CONFIG, load_config(ga_path))
        except Exception as e:
            return {
                'valid': False,
                'errors': [f"Failed to load configuration: {e}"],
                'warnings': [],
                'recommendations': [],
                'summary': {}
            }

        # Basic validation
        self.errors.extend(validate_scene_config(scene_config))
        self.errors.extend(validate_ga_config(ga_config))

        if not self.errors:
            self._validate_reachability(scene_config, ga_config)
            self._validate_fitness(ga_config)
            self._validate_operators(ga_config)

        return {
            'valid': len(self.errors) == 0,
            'errors': self.errors,
            'warnings': self.warnings,
            'recommendations': self.recommendations,
            'summary': self._generate_summary(scene_config, ga_config)
        }

    def _validate_reachability(self, scene_config: Dict[str, Any], ga_config: Dict[str, Any]):
        """Compare the initial path reach with the start-to-target distance"""
        start = np.array(scene_config['scene']['start'], dtype=float)
        target = np.array(scene_config['scene']['target'], dtype=float)
        distance = float(np.linalg.norm(target - start))

        population = ga_config['population']
        capture_radius = ga_config['fitness']['capture_radius']
        max_reach = (population['max_nodes'] - 1) * population['max_initial_variation'] * np.sqrt(3)

        if distance <= capture_radius:
            self.warnings.append(
                f"Start lies inside the capture radius ({distance:.1f} < {capture_radius}); "
                f"every path reaches the target"
            )
        elif max_reach < distance:
            self.recommendations.append(
                f"Initial paths reach at most {max_reach:.1f} of {distance:.1f} units; "
                f"the population relies on mutation to get closer"
            )

        for index, obstacle in enumerate(scene_config.get('obstacles') or []):
            if obstacle['type'] == 'sphere':
                center = np.array(obstacle['center'], dtype=float)
                for name, anchor in (('start', start), ('target', target)):
                    if np.linalg.norm(center - anchor) <= obstacle['radius']:
                        self.errors.append(
                            f"{name} anchor lies inside obstacle {obstacle.get('name', index)}"
                        )

    def _validate_fitness(self, ga_config: Dict[str, Any]):
        """Validate fitness weighting"""
        fitness = ga_config['fitness']
        if theoretical_maximum_fitness(ga_config) <= 0:
            self.errors.append("All fitness weights are zero; selection is impossible")

        if all(value == 1.0 for value in fitness['multipliers'].values()):
            self.warnings.append("All penalty multipliers are 1.0; obstacles and terrain are ignored")

        if fitness['weights'].get('slope', 0.0) > 0:
            self.recommendations.append(
                "The slope weight is a flat bonus for every path; use the slope multiplier to penalize"
            )

    def _validate_operators(self, ga_config: Dict[str, Any]):
        """Validate crossover and mutation settings"""
        mutation = ga_config['mutation']
        operator_total = (
            mutation['translate_probability']
            + mutation['insert_probability']
            + mutation['delete_probability']
        )

        if mutation['probability'] == 0:
            self.warnings.append("Mutation probability is 0; genomes only change by crossover")
        elif operator_total == 0:
            self.warnings.append("All mutation operator probabilities are 0")

        if ga_config['crossover']['probability'] == 0 and mutation['probability'] == 0:
            self.errors.append("Crossover and mutation are both disabled; the population cannot evolve")

        if ga_config['population']['size'] < 10:
            self.warnings.append(f"Small population ({ga_config['population']['size']}) converges quickly")

    def _generate_summary(self, scene_config: Dict[str, Any], ga_config: Dict[str, Any]) -> Dict[str, Any]:
        """Generate configuration summary"""
        return {
            'scene': {
                'start': (scene_config.get('scene') or {}).get('start'),
                'target': (scene_config.get('scene') or {}).get('target'),
                'obstacles': len(scene_config.get('obstacles') or []),
                'terrain': (scene_config.get('terrain') or {}).get('type', 'none'),
            },
            'ga': {
                'population_size': ga_config['population']['size'],
                'crossover_operator': ga_config['crossover']['operator'],
                'maximum_fitness': theoretical_maximum_fitness(ga_config),
                'reproducible': ga_config.get('random_seed') is not None,
            },
        }


def main():
    """Main validation function"""
    parser = argparse.ArgumentParser(
        description="Validate YAML configuration files for path evolution",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        'scene_config',
        nargs='?',
        default='config.yaml',
        help='Scene configuration file to validate (default: config.yaml)'
    )

    parser.add_argument(
        '--ga-config', '-g',
        default='path_ga/ga_config.yaml',
        help='GA configuration file to validate (default: path_ga/ga_config.yaml)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show detailed validation information'
    )

    parser.add_argument(
        '--warnings-only', '-w',
        action='store_true',
        help='Show only warnings and errors (no recommendations)'
    )

    args = parser.parse_args()

    validator = ConfigValidator()
    result = validator.validate_comprehensive(args.scene_config, args.ga_config)

    # Print results
    print("=" * 60)
    print("CONFIGURATION VALIDATION REPORT")
    print("=" * 60)
    print(f"Scene: {args.scene_config}")
    print(f"GA: {args.ga_config}")
    print(f"Status: {'VALID' if result['valid'] else 'INVALID'}")
    print()

    if result['errors']:
        print("ERRORS:")
        for error in result['errors']:
            print(f"  - {error}")
        print()

    if result['warnings']:
        print("WARNINGS:")
        for warning in result['warnings']:
            print(f"  - {warning}")
        print()

    if result['recommendations'] and not args.warnings_only:
        print("RECOMMENDATIONS:")
        for rec in result['recommendations']:
            print(f"  - {rec}")
        print()

    if result['summary'] and args.verbose:
        print("SUMMARY:")
        for section, data in result['summary'].items():
            print(f"  {section.title()}:")
            for key, value in data.items():
                print(f"    {key}: {value}")
        print()

    print("=" * 60)

    sys.exit(0 if result['valid'] else 1)


if __name__ == "__main__":
    main()
