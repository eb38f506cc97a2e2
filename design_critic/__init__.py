# Design Critic - screenshot design critique service
