"""
Scan Services

Organized by responsibility:

1. scraping/ - Browser automation
   - page_renderer.py: headless Chrome, resource blocking, raw DOM facts

2. extraction/ - Parsing and normalization
   - page_signal_extractor.py: title, meta, headings, images, same-origin links

3. analysis/ - Recommendations
   - recommendation_engine.py: optimized title/description, priority, alt text

4. crawl/ - Traversal
   - crawler.py: bounded breadth-first crawl of one site

5. queue/ - Job coordination
   - job_scheduler.py: single-flight queue with retries and eviction

6. session/ - Persistence
   - session_store.py: scan session records and their expiry

7. scan/ - API-facing operations
   - scan_service.py: start, status, results, queue stats, cleanup
"""
