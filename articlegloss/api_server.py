#!/usr/bin/env python3
"""
ArticleGloss REST API Server
Provides HTTP endpoints for a frontend that renders annotated articles
"""

import logging
import sys
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from articlegloss.core.acquisition import InvalidArticleURL
from articlegloss.core.annotator import AnnotationOptions
from articlegloss.core.config import ArticleGlossConfig, Components, build_components, configure_logging

logger = logging.getLogger(__name__)


def _flag(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'on')
    return bool(value)


def _json_object() -> Optional[dict]:
    """Request body as a JSON object; None when it is anything else"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _options_from(data: dict, components: Components) -> AnnotationOptions:
    defaults = components.config.annotation
    mode = data.get('glossary_mode')
    if mode is not None and not isinstance(mode, str):
        raise ValueError("glossary_mode must be a string")
    return AnnotationOptions(
        glossary_mode=mode or defaults.glossary_mode,
        scientific=_flag(data.get('scientific'), defaults.scientific),
        simple_english=_flag(data.get('simple_english'), defaults.simple_english),
    )


def create_app(config: Optional[ArticleGlossConfig] = None,
               components: Optional[Components] = None) -> Flask:
    """
    Build the Flask application

    Args:
        config: Configuration used to build components
        components: Pre-built components (tests pass fakes here)

    Returns:
        Flask app bound to one set of components and one lookup cache
    """
    components = components or build_components(config)

    app = Flask(__name__)
    CORS(app)  # Enable CORS for the frontend
    app.extensions['articlegloss'] = components

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({"status": "healthy", "message": "ArticleGloss API is running"})

    @app.route('/api/annotate', methods=['POST'])
    def annotate():
        """Annotate plain text"""
        data = _json_object()
        if data is None:
            return jsonify({"error": "Request body must be a JSON object"}), 400

        text = data.get('text')
        if not isinstance(text, str) or not text:
            return jsonify({"error": "No text provided"}), 400

        try:
            options = _options_from(data, components)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        annotations = components.pipeline.annotate_tokens(text, options)
        return jsonify({
            "markup": "".join(a.to_markup() for a in annotations),
            "annotations": [a.to_dict() for a in annotations if a.is_annotated],
        })

    @app.route('/api/article', methods=['POST'])
    def article():
        """Acquire an article from a URL and annotate its body"""
        data = _json_object()
        if data is None:
            return jsonify({"success": False, "error": "Request body must be a JSON object"}), 400

        url = data.get('url') or ''
        if not isinstance(url, str):
            return jsonify({"success": False, "error": "URL must be a string"}), 400

        try:
            options = _options_from(data, components)
        except ValueError as e:
            return jsonify({"success": False, "error": str(e)}), 400

        try:
            result = components.acquirer.acquire(url)
        except InvalidArticleURL as e:
            return jsonify({"success": False, "error": str(e)}), 400

        if not result.ok:
            return jsonify({
                "success": False,
                "error": result.reason,
                "trail": [state.value for state in result.trail],
            }), 502

        acquired = result.article
        annotations = components.pipeline.annotate_tokens(acquired.body, options)

        return jsonify({
            "success": True,
            "title": acquired.title,
            "byline": acquired.byline,
            "source_url": acquired.source_url,
            "tier": acquired.tier.value,
            "notice": result.notice,
            "trail": [state.value for state in result.trail],
            "markup": "".join(a.to_markup() for a in annotations),
            "annotations": [a.to_dict() for a in annotations if a.is_annotated],
        })

    @app.route('/api/define/<term>', methods=['GET'])
    def define(term):
        """Definition for a rendered term (the data-term of a span)"""
        options = _options_from(request.args.to_dict(), components)

        explained = components.pipeline.explain(term, options)
        if explained is None:
            return jsonify({"term": term, "definition": None, "source": None}), 404

        definition, source = explained
        return jsonify({"term": term, "definition": definition, "source": source})

    @app.route('/api/glossary', methods=['GET'])
    def glossary_info():
        """Glossary modes, labels and statistics"""
        registry = components.glossaries
        return jsonify({
            "modes": [{"mode": mode, "label": registry.get(mode).label, "terms": len(registry.get(mode))}
                      for mode in registry.modes()],
            "stats": registry.get_stats(),
            "cache": components.cache.stats(),
        })

    @app.route('/api/glossary/search', methods=['GET'])
    def glossary_search():
        query = request.args.get('q', '')
        mode = request.args.get('mode') or components.config.annotation.glossary_mode
        results = components.glossaries.search_terms(query, mode)
        return jsonify({"query": query, "results": [{"term": t, "definition": d} for t, d in results]})

    return app


def main():
    config = ArticleGlossConfig()
    configure_logging(config.log_level)

    logger.info("Starting ArticleGloss API server...")
    try:
        app = create_app(config)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to start ArticleGloss API server: {e}")
        return 1

    logger.info("Starting Flask server on http://localhost:8000")
    app.run(host='0.0.0.0', port=8000)
    return 0


if __name__ == '__main__':
    sys.exit(main())
