#!/usr/bin/env python3
"""
Test Coverage Analysis Script
Walks test_comprehensive.py and writes a per-layer inventory of the test suite
"""

import ast
from typing import Dict, List, Set
from collections import defaultdict
from pathlib import Path


# test class -> (layer, area)
CLASS_AREAS = {
    'TestValueObjects': ('Domain Layer', 'Value Objects'),
    'TestReservationEntity': ('Domain Layer', 'Reservation Aggregate'),
    'TestRatePlan': ('Domain Layer', 'Rate Plans'),
    'TestSettlement': ('Domain Layer', 'Settlement Calculator'),
    'TestReservationMapper': ('Application Services', 'Record Mapping'),
    'TestAvailabilityService': ('Application Services', 'AvailabilityService'),
    'TestReservationService': ('Application Services', 'ReservationService'),
    'TestCheckInCheckOut': ('Application Services', 'Check-in / Check-out'),
    'TestHydrationAndConcurrency': ('Application Services', 'Hydration & Concurrency'),
    'TestRatePlanService': ('Application Services', 'RatePlanService'),
    'TestAlertService': ('Application Services', 'AlertService'),
    'TestAlertScheduler': ('Application Services', 'AlertScheduler'),
    'TestSnapshotAndRepositories': ('Infrastructure', 'Snapshot & Repositories'),
    'TestInMemoryBackend': ('Infrastructure', 'In-Memory Backend'),
    'TestHttpBackend': ('Infrastructure', 'HTTP Backend'),
    'TestSecurity': ('Infrastructure', 'Security'),
    'TestAuthenticationAPI': ('API/Integration', 'Authentication'),
    'TestHealthAndEnumsAPI': ('API/Integration', 'Health & Enums'),
    'TestReservationAPI': ('API/Integration', 'Reservations'),
    'TestAvailabilityAndBillingAPI': ('API/Integration', 'Availability & Billing'),
    'TestRatePlanAPI': ('API/Integration', 'Rate Plans'),
    'TestAlertAPI': ('API/Integration', 'Alerts'),
    'TestAPIMockErrors': ('API/Integration', 'Error Mapping'),
}

LAYERS = ['Domain Layer', 'Application Services', 'Infrastructure', 'API/Integration']


class TestAnalyzer:
    """Analyzer for test files to extract coverage statistics"""

    def __init__(self):
        self.test_classes = defaultdict(list)
        self.test_markers = defaultdict(set)
        self.total_tests = 0
        self.categories: Dict[str, Dict[str, List[str]]] = {layer: defaultdict(list) for layer in LAYERS}
        self.categories['Specialized'] = defaultdict(list)
        self.unmapped: List[str] = []

    def analyze_file(self, filepath: str):
        """Parse Python test file and extract test information"""
        tree = ast.parse(Path(filepath).read_text(encoding='utf-8'))
        for node in tree.body:
            if isinstance(node, ast.ClassDef) and node.name.startswith('Test'):
                self._analyze_class(node)

    def _analyze_class(self, class_node):
        class_name = class_node.name
        for item in class_node.body:
            # async tests run under asyncio_mode=auto
            if isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef)) and item.name.startswith('test_'):
                self.total_tests += 1
                markers = self._extract_markers(item)
                self.test_classes[class_name].append({'name': item.name, 'markers': markers})
                for marker in markers:
                    self.test_markers[marker].add(f"{class_name}.{item.name}")
                self._categorize_test(class_name, item.name, markers)

    def _extract_markers(self, func_node) -> Set[str]:
        """pytest.mark.<name> and pytest.mark.<name>(...) decorators"""
        markers = set()
        for decorator in func_node.decorator_list:
            target = decorator.func if isinstance(decorator, ast.Call) else decorator
            if (isinstance(target, ast.Attribute)
                    and isinstance(target.value, ast.Attribute)
                    and target.value.attr == 'mark'
                    and isinstance(target.value.value, ast.Name)
                    and target.value.value.id == 'pytest'):
                if target.attr != 'parametrize':
                    markers.add(target.attr)
        return markers

    def _categorize_test(self, class_name: str, test_name: str, markers: Set[str]):
        test_id = f"{class_name}.{test_name}"
        area = CLASS_AREAS.get(class_name)
        if area:
            layer, name = area
            self.categories[layer][name].append(test_id)
        else:
            self.unmapped.append(test_id)

        if 'security' in markers:
            self.categories['Specialized']['Security Tests'].append(test_id)
        if 'edge_case' in markers:
            self.categories['Specialized']['Edge Cases'].append(test_id)

    def _layer_total(self, layer: str) -> int:
        return sum(len(tests) for tests in self.categories[layer].values())

    def _pct(self, count: int) -> float:
        return count / self.total_tests * 100 if self.total_tests else 0.0

    def generate_report(self) -> str:
        """Generate markdown report"""
        report = []
        report.append("# 📊 Unit Testing Coverage Report\n")
        report.append("**Hotel Front Office API - Test Inventory**\n")
        report.append(f"**Generated:** {Path.cwd().name}\n")
        report.append("---\n")

        report.append("## 🎯 Totals\n")
        report.append(f"- **Test Cases**: {self.total_tests}\n")
        report.append(f"- **Test Classes**: {len(self.test_classes)}\n")
        report.append(f"- **Test Markers Used**: {len(self.test_markers)}\n")

        report.append("\n## 🏗️ Test Distribution by Architectural Layer\n")
        report.append("```")
        for layer in LAYERS:
            count = self._layer_total(layer)
            filled = round(self._pct(count) / 5)
            bar = '█' * filled + '░' * (20 - filled)
            report.append(f"{layer:<22}: {bar} {count} tests ({self._pct(count):.1f}%)")
        report.append("```\n")

        report.append("## 📈 Coverage by Category\n")
        for category_name, areas in self.categories.items():
            category_total = sum(len(tests) for tests in areas.values())
            if not category_total:
                continue
            report.append(f"\n### {category_name}\n")
            report.append(f"**Total: {category_total} tests ({self._pct(category_total):.1f}% of total)**\n")
            for area_name, tests in areas.items():
                report.append(f"- **{area_name}**: {len(tests)} tests ({self._pct(len(tests)):.1f}%)\n")

        report.append("\n## 🏷️ Test Markers Distribution\n")
        marker_counts = {marker: len(tests) for marker, tests in self.test_markers.items()}
        for marker, count in sorted(marker_counts.items(), key=lambda x: x[1], reverse=True):
            report.append(f"- `@pytest.mark.{marker}`: {count} tests ({self._pct(count):.1f}%)\n")

        report.append("\n## 📋 Detailed Test Breakdown\n")
        for layer in LAYERS:
            if not self._layer_total(layer):
                continue
            report.append(f"\n### {layer}\n")
            for area_name, tests in self.categories[layer].items():
                report.append(f"\n#### {area_name} ({len(tests)} tests)\n")
                for test_id in tests:
                    report.append(f"- {test_id.replace('.test_', ' → ')}\n")

        if self.unmapped:
            report.append("\n## ⚠️ Tests Outside Known Classes\n")
            for test_id in self.unmapped:
                report.append(f"- {test_id}\n")

        report.append("\n---\n")
        report.append("*Report generated by analyze_test_coverage.py*\n")
        return '\n'.join(report)


def main():
    """Main execution"""
    analyzer = TestAnalyzer()
    test_file = Path(__file__).parent / 'test_comprehensive.py'

    if not test_file.exists():
        print(f"Error: {test_file} not found!")
        return

    print("🔍 Analyzing test files...")
    analyzer.analyze_file(str(test_file))
    print(f"✅ Found {analyzer.total_tests} tests in {len(analyzer.test_classes)} classes")

    report_file = Path(__file__).parent / 'TEST_COVERAGE_REPORT.md'
    report_file.write_text(analyzer.generate_report(), encoding='utf-8')

    print(f"✨ Coverage report saved to: {report_file}")
    print(f"\n{'='*70}")
    print(f"{'SUMMARY':^70}")
    print(f"{'='*70}")
    for layer in LAYERS:
        print(f"{layer:<22}: {analyzer._layer_total(layer)}")
    print(f"Total Tests: {analyzer.total_tests}")
    print(f"{'='*70}\n")


if __name__ == '__main__':
    main()
