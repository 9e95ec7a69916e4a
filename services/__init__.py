"""
Listing Video Services

- composition: Timeline Composer for listing slideshows
- video_generation: Render provider adapters and status normalization
- orchestrator: Job facade and HTTP server
"""
