"""
ArticleGloss Glossary Registry
Static domain glossaries used by the scientific annotation layer
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# Embedded domain glossaries, one mapping per domain
GLOSSARY_YAML = """
micro:
  pathogen: "A microorganism that can cause disease."
  virulence: "The degree of pathogenicity of a microorganism."
  biofilm: "A structured community of microorganisms within a matrix."
  bacteriophage: "A virus that infects and replicates within bacteria."
  endospore: "A dormant, tough structure some bacteria form to survive harsh conditions."
  flagellum: "A whip-like appendage that lets a microorganism move."
  commensal: "A microorganism that lives on a host without harming it."
  prokaryote: "A single-celled organism without a nucleus."
  plasmid: "A small circular DNA molecule separate from the chromosome."
  serotype: "A variant within a species distinguished by its surface antigens."

genetics:
  genome: "The complete set of DNA in an organism."
  allele: "One of two or more versions of a gene."
  mutation: "A permanent change in DNA sequence."
  genotype: "The genetic makeup of an organism."
  phenotype: "The observable traits of an organism."
  heterozygous: "Having two different alleles of a gene."
  homozygous: "Having two identical alleles of a gene."
  locus: "The position of a gene on a chromosome."
  transcription: "Copying DNA information into RNA."
  epigenetics: "Changes in gene activity that do not alter the DNA sequence."

immunology:
  antigen: "A molecule recognized by the immune system."
  antibody: "A protein produced by B cells that binds antigens."
  cytokine: "A signaling protein in the immune system."
  lymphocyte: "A white blood cell such as a B cell or T cell."
  macrophage: "A large white blood cell that engulfs pathogens and debris."
  inflammation: "The body's protective response to injury or infection."
  vaccine: "A preparation that trains the immune system to recognize a pathogen."
  epitope: "The part of an antigen that an antibody binds."
  complement: "A group of blood proteins that help destroy pathogens."
  immunoglobulin: "Another name for an antibody."

biology:
  homeostasis: "Maintenance of internal stability."
  metabolism: "Chemical processes that maintain life."
  osmosis: "Diffusion of water across a membrane."
  mitosis: "Cell division that produces two identical daughter cells."
  meiosis: "Cell division that produces reproductive cells with half the chromosomes."
  organelle: "A specialized structure inside a cell."
  apoptosis: "Programmed cell death."
  ribosome: "The cellular machine that builds proteins."
  chloroplast: "The organelle where photosynthesis happens."
  mitochondria: "Organelles that produce most of a cell's energy."

chemistry:
  molarity: "Concentration expressed as moles per liter."
  catalyst: "A substance that speeds up a reaction."
  polymer: "A molecule made of repeating units."
  enzyme: "A protein that acts as a biological catalyst."
  isomer: "A molecule with the same formula as another but a different structure."
  oxidation: "Loss of electrons by a molecule or atom."
  reduction: "Gain of electrons by a molecule or atom."
  substrate: "The molecule an enzyme acts on."
  ligand: "A molecule that binds to a receptor or metal ion."
  buffer: "A solution that resists changes in pH."
"""

# Declared domain order; also the collision order of the combined glossary
DOMAIN_ORDER = ("micro", "genetics", "immunology", "biology", "chemistry")
COMBINED = "combined"

SOURCE_LABELS = {
    "micro": "Microbiology glossary",
    "genetics": "Genetics glossary",
    "immunology": "Immunology glossary",
    "biology": "Biology glossary",
    "chemistry": "Chemistry / Biochemistry glossary",
}
COMBINED_LABEL = "Scientific glossary (combined)"


def mode_to_source_label(mode: str) -> str:
    """Human-readable source label for a glossary mode"""
    return SOURCE_LABELS.get(mode, COMBINED_LABEL)


def domain_label(domain: str) -> str:
    """Label for a named domain; custom domains are labelled after their name"""
    if domain in SOURCE_LABELS:
        return SOURCE_LABELS[domain]
    return f"{domain.replace('_', ' ').title()} glossary"


@dataclass(frozen=True)
class Glossary:
    """A single term -> definition table with its display label"""

    name: str
    label: str
    terms: Dict[str, str] = field(default_factory=dict)

    def __contains__(self, term: str) -> bool:
        return term.lower() in self.terms

    def __len__(self) -> int:
        return len(self.terms)

    def keys(self) -> Iterable[str]:
        return self.terms.keys()

    def get_definition(self, term: str) -> Optional[str]:
        return self.terms.get(term.lower())


class GlossaryRegistry:
    """
    Holds the per-domain glossaries and the derived combined union.

    The combined glossary is built in DOMAIN_ORDER with a first-domain-wins
    rule; every key that is defined by more than one domain is recorded in
    ``collisions`` as ``(term, kept_domain, ignored_domain)``.
    """

    def __init__(self, custom_glossary: Optional[Dict[str, Dict[str, str]]] = None):
        """
        Initialize the registry

        Args:
            custom_glossary: Optional {domain: {term: definition}} to add/override
        """
        base = yaml.safe_load(GLOSSARY_YAML)

        self._domains: Dict[str, Dict[str, str]] = {}
        for domain in DOMAIN_ORDER:
            self._domains[domain] = self._normalize(base.get(domain) or {})

        self.collisions: List[Tuple[str, str, str]] = []
        self._glossaries: Dict[str, Glossary] = {}

        if custom_glossary:
            for domain, terms in custom_glossary.items():
                self._merge(domain, terms)

        self._rebuild()
        logger.info(f"Loaded {len(self._domains)} domain glossaries, "
                    f"{len(self._glossaries[COMBINED])} combined terms")

    @staticmethod
    def _normalize(terms: Dict[str, str]) -> Dict[str, str]:
        normalized = {}
        for term, definition in terms.items():
            key = str(term).strip().lower()
            if not key:
                continue
            # Tokens never contain whitespace, so such keys could never match
            if any(char.isspace() for char in key):
                logger.warning(f"Skipping glossary term '{key}': terms must be single words")
                continue
            normalized[key] = str(definition).strip()
        return normalized

    def _merge(self, domain: str, terms: Dict[str, str]):
        if domain == COMBINED:
            raise ValueError("Terms must be added to a named domain, not the combined glossary")
        self._domains.setdefault(domain, {}).update(self._normalize(terms))

    def _rebuild(self):
        combined: Dict[str, str] = {}
        owner: Dict[str, str] = {}
        self.collisions = []

        for domain in self.domains():
            for term, definition in self._domains[domain].items():
                if term in combined:
                    self.collisions.append((term, owner[term], domain))
                    logger.warning(f"Glossary collision on '{term}': keeping {owner[term]}, "
                                   f"ignoring {domain}")
                    continue
                combined[term] = definition
                owner[term] = domain

        self._glossaries = {
            domain: Glossary(domain, domain_label(domain), dict(terms))
            for domain, terms in self._domains.items()
        }
        self._glossaries[COMBINED] = Glossary(COMBINED, COMBINED_LABEL, combined)

    def domains(self) -> List[str]:
        """Named domains in collision order (declared ones first, custom ones after)"""
        extra = [d for d in self._domains if d not in DOMAIN_ORDER]
        return [d for d in DOMAIN_ORDER if d in self._domains] + extra

    def modes(self) -> List[str]:
        return self.domains() + [COMBINED]

    def get(self, mode: str) -> Glossary:
        """Glossary for a mode; unknown modes fall back to the combined glossary"""
        glossary = self._glossaries.get(mode)
        if glossary is None:
            logger.debug(f"Unknown glossary mode '{mode}', using {COMBINED}")
            return self._glossaries[COMBINED]
        return glossary

    def add_terms(self, domain: str, new_terms: Dict[str, str]):
        """
        Add new terms to a domain and rebuild the combined glossary

        Args:
            domain: Domain name (an existing one or a new custom domain)
            new_terms: Dictionary of term -> definition
        """
        self._merge(domain, new_terms)
        self._rebuild()
        logger.info(f"Added {len(new_terms)} terms to the {domain} glossary")

    def load_file(self, path: str):
        """Load custom terms from a YAML file shaped as {domain: {term: definition}}"""
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Glossary file {path} must map domains to term tables")

        for domain, terms in data.items():
            if not isinstance(terms, dict):
                raise ValueError(f"Glossary domain '{domain}' in {path} is not a mapping")
            self._merge(str(domain), terms)
        self._rebuild()
        logger.info(f"Loaded custom glossary from {path}")

    def search_terms(self, query: str, mode: str = COMBINED) -> List[Tuple[str, str]]:
        """
        Search for terms containing query string

        Args:
            query: Search query
            mode: Glossary to search

        Returns:
            List of (term, definition) tuples, best matches first
        """
        query_lower = query.lower().strip()
        if not query_lower:
            return []

        results = [(term, definition) for term, definition in self.get(mode).terms.items()
                   if query_lower in term or query_lower in definition.lower()]

        def sort_key(item):
            term = item[0]
            if term == query_lower:
                return (0, len(term), term)
            elif term.startswith(query_lower):
                return (1, len(term), term)
            elif query_lower in term:
                return (2, len(term), term)
            return (3, len(term), term)

        return sorted(results, key=sort_key)

    def export_glossary(self, format: str = "json", mode: str = COMBINED) -> str:
        """
        Export a glossary in different formats

        Args:
            format: Export format ("json", "yaml", "csv")
            mode: Glossary to export

        Returns:
            Formatted glossary string
        """
        terms = dict(sorted(self.get(mode).terms.items()))

        if format == "json":
            return json.dumps(terms, indent=2, ensure_ascii=False)

        elif format == "yaml":
            return yaml.dump(terms, default_flow_style=False, allow_unicode=True)

        elif format == "csv":
            lines = ["term,definition"]
            for term, definition in terms.items():
                if ',' in definition or '"' in definition:
                    definition = '"' + definition.replace('"', '""') + '"'
                lines.append(f"{term},{definition}")
            return "\n".join(lines)

        else:
            raise ValueError(f"Unknown format: {format}")

    def get_stats(self) -> Dict[str, int]:
        """Term counts per mode plus the number of combined-glossary collisions"""
        stats = {mode: len(self.get(mode)) for mode in self.modes()}
        stats['collisions'] = len(self.collisions)
        return stats
